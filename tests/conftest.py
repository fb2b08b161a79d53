"""Pytest fixtures for firestarter tests."""
import asyncio
import uuid
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from firestarter.core.api import APIConfig, HTTPTransport, StorageGateway
from firestarter.core.models import Account


class FakePipeService:
    """
    In-process stand-in for the Pipe storage API.

    Records every call per path in ``calls``. ``fail[path] = status`` forces
    a status for a path; ``delay[path] = seconds`` stalls it.
    """

    def __init__(self, expires_in: int = 3600):
        self.expires_in = expires_in
        self.users = {}
        self.access_tokens = {}
        self.refresh_tokens = {}
        self.files = {}
        self.links = {}
        self.calls = Counter()
        self.fail = {}
        self.delay = {}
        self.last_headers = {}
        self.check_wallet_returns_user_id = True
        self.minted_override = None
        self.base_url = ''

    # Helpers

    def add_user(self, username, password, sol=0.0, pipe=0.0):
        user = {
            'username': username,
            'password': password,
            'user_id': f"uid-{uuid.uuid4().hex[:12]}",
            'user_app_key': f"key-{uuid.uuid4().hex}",
            'public_key': f"pub{uuid.uuid4().hex[:20]}",
            'sol': sol,
            'pipe': pipe,
        }
        self.users[username] = user
        return user

    def account_for(self, username, expires_in=3600):
        """Account snapshot for a registered user with freshly issued tokens."""
        user = self.users[username]
        tokens = self._issue_tokens(username)
        return Account(
            username=username,
            password=user['password'],
            user_id=user['user_id'],
            user_app_key=user['user_app_key'],
            access_token=tokens['access_token'],
            refresh_token=tokens['refresh_token'],
            token_expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )

    def _issue_tokens(self, username):
        access = f"at-{uuid.uuid4().hex}"
        refresh = f"rt-{uuid.uuid4().hex}"
        self.access_tokens[access] = username
        self.refresh_tokens[refresh] = username
        return {'access_token': access, 'refresh_token': refresh, 'expires_in': self.expires_in}

    def _authorized_user(self, request):
        auth = request.headers.get('Authorization', '')
        if auth.startswith('Bearer '):
            username = self.access_tokens.get(auth[len('Bearer '):])
            return self.users.get(username) if username else None
        user_id = request.headers.get('X-User-Id')
        app_key = request.headers.get('X-User-App-Key')
        for user in self.users.values():
            if user['user_id'] == user_id and user['user_app_key'] == app_key:
                return user
        return None

    @staticmethod
    def _error(status, message):
        return web.json_response({'message': message}, status=status)

    # Middleware

    @web.middleware
    async def _middleware(self, request, handler):
        path = request.path
        self.calls[path] += 1
        self.last_headers[path] = dict(request.headers)
        if path in self.delay:
            await asyncio.sleep(self.delay[path])
        if path in self.fail:
            return self._error(self.fail[path], 'forced failure')
        return await handler(request)

    # Handlers

    async def create_user(self, request):
        body = await request.json()
        username = body.get('username')
        if username in self.users:
            return self._error(409, 'username taken')
        user = self.add_user(username, None)
        return web.json_response({
            'user_id': user['user_id'],
            'user_app_key': user['user_app_key'],
            'solana_pubkey': user['public_key'],
        })

    async def set_password(self, request):
        body = await request.json()
        for user in self.users.values():
            if user['user_id'] == body.get('user_id') and user['user_app_key'] == body.get('user_app_key'):
                user['password'] = body.get('new_password')
                return web.json_response(self._issue_tokens(user['username']))
        return self._error(401, 'bad app key')

    async def login(self, request):
        body = await request.json()
        user = self.users.get(body.get('username'))
        if user is None or user['password'] != body.get('password'):
            return self._error(401, 'invalid credentials')
        return web.json_response(self._issue_tokens(user['username']))

    async def refresh(self, request):
        body = await request.json()
        username = self.refresh_tokens.pop(body.get('refresh_token'), None)
        if username is None:
            return self._error(401, 'invalid refresh token')
        return web.json_response(self._issue_tokens(username))

    async def check_wallet(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        data = {'public_key': user['public_key'], 'balance_sol': user['sol']}
        if self.check_wallet_returns_user_id:
            data['user_id'] = user['user_id']
        return web.json_response(data)

    async def check_custom_token(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        return web.json_response({'ui_amount': user['pipe']})

    async def upload(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        data = await request.read()
        if user['pipe'] < 0:
            return self._error(402, 'insufficient balance')
        self.files[(user['username'], request.query['file_name'])] = data
        return web.json_response({'status': 'ok'})

    async def download(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        data = self.files.get((user['username'], request.query.get('file_name')))
        if data is None:
            return self._error(404, 'file not found')
        return web.Response(body=data, content_type='application/octet-stream')

    async def delete_file(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        body = await request.json()
        if self.files.pop((user['username'], body.get('file_name')), None) is None:
            return self._error(404, 'file not found')
        return web.json_response({'message': 'deleted'})

    async def create_public_link(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        body = await request.json()
        key = (user['username'], body.get('file_name'))
        if key not in self.files:
            return self._error(404, 'file not found')
        link_hash = uuid.uuid4().hex
        self.links[link_hash] = key
        return web.json_response({'link_hash': link_hash})

    async def delete_public_link(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        body = await request.json()
        if self.links.pop(body.get('link_hash'), None) is None:
            return self._error(404, 'link not found')
        return web.json_response({'message': 'deleted'})

    async def public_file(self, request):
        key = self.links.get(request.match_info['link_hash'])
        if key is None or key not in self.files:
            return self._error(404, 'link not found')
        return web.Response(body=self.files[key], content_type='application/octet-stream')

    async def exchange(self, request):
        user = self._authorized_user(request)
        if user is None:
            return self._error(401, 'unauthorized')
        body = await request.json()
        amount = float(body.get('amount_sol', 0))
        if amount > user['sol']:
            return self._error(402, 'insufficient SOL')
        user['sol'] -= amount
        minted = amount * 10
        user['pipe'] += minted
        if self.minted_override is not None:
            minted = self.minted_override
        return web.json_response({'tokens_minted': minted})

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._middleware])
        app.router.add_post('/users', self.create_user)
        app.router.add_post('/auth/set-password', self.set_password)
        app.router.add_post('/auth/login', self.login)
        app.router.add_post('/auth/refresh', self.refresh)
        app.router.add_post('/checkWallet', self.check_wallet)
        app.router.add_post('/checkCustomToken', self.check_custom_token)
        app.router.add_post('/upload', self.upload)
        app.router.add_get('/download-stream', self.download)
        app.router.add_get('/download', self.download)
        app.router.add_post('/deleteFile', self.delete_file)
        app.router.add_post('/createPublicLink', self.create_public_link)
        app.router.add_delete('/deletePublicLink', self.delete_public_link)
        app.router.add_get('/public/{link_hash}', self.public_file)
        app.router.add_post('/exchangeSolForTokens', self.exchange)
        return app


@pytest_asyncio.fixture
async def fake_service():
    """Running fake storage service."""
    service = FakePipeService()
    server = TestServer(service.build_app())
    await server.start_server()
    service.base_url = f"http://{server.host}:{server.port}"
    yield service
    await server.close()


@pytest.fixture
def api_config(fake_service):
    """API configuration pointing at the fake service."""
    return APIConfig(base_url=fake_service.base_url, download_timeout=1.0)


@pytest_asyncio.fixture
async def transport(api_config):
    """HTTP transport to the fake service."""
    http = HTTPTransport(api_config)
    yield http
    await http.close()


@pytest.fixture
def alice(fake_service):
    """Registered account ``alice1234`` with a fresh token."""
    fake_service.add_user('alice1234', 'Passw0rd!')
    return fake_service.account_for('alice1234')


@pytest_asyncio.fixture
async def gateway(api_config):
    """Gateway talking to the fake service."""
    gw = StorageGateway(api_config)
    yield gw
    await gw.close()


@pytest.fixture
def expire():
    """Returns a copy of an account whose access token expired a minute ago."""
    def _expire(account: Account) -> Account:
        return replace(account, token_expiry=datetime.now(timezone.utc) - timedelta(minutes=1))
    return _expire


@pytest.fixture
def sample_account():
    """An account with a fresh token, not known to any service."""
    return Account(
        username='sample_user',
        password='Passw0rd!',
        user_id='uid-sample',
        user_app_key='key-sample',
        access_token='at-sample',
        refresh_token='rt-sample',
        token_expiry=datetime.now(timezone.utc) + timedelta(hours=1),
    )
