"""
Low-level gateway - Manage account snapshots yourself
"""
import asyncio
import logging
from firestarter import (
    APIConfig,
    CredentialStore,
    MemoryStorage,
    StorageGateway,
    generate_credentials_from_address,
    setup_logging,
)


async def main():
    logging.basicConfig(format="%(name)s %(levelname)s %(message)s")
    setup_logging(logging.DEBUG)

    creds = generate_credentials_from_address("7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU")
    store = CredentialStore(MemoryStorage())

    async with StorageGateway(APIConfig.from_env()) as gateway:
        account = await gateway.login(creds.username, creds.password)
        store.save(account)

        result = await gateway.upload_file(account, b"snapshot demo", "demo.txt")
        if result.refreshed:
            # Tokens were renewed during the call; persist the new snapshot
            store.save(result.account)
        account = result.account

        balance = await gateway.get_balance(account)
        print(f"PIPE after upload: {balance.value.pipe}")


if __name__ == "__main__":
    asyncio.run(main())
