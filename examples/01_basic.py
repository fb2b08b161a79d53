"""
Basic usage - Login and show balances
"""
import asyncio
from firestarter import FirestarterClient, SQLiteStorage


async def main():
    # Credentials are saved to state.db and reused on the next run
    storage = SQLiteStorage("state")
    async with FirestarterClient(storage) as fs:

        if fs.resume() is None:
            await fs.login("myusername", "mypassword")
        print(f"Logged in as {fs.account.username}")

        balance = await fs.get_balance()
        print(f"SOL:  {balance.sol}")
        print(f"PIPE: {balance.pipe}")
        print(f"Deposit address: {balance.public_key}")

    storage.close()


if __name__ == "__main__":
    asyncio.run(main())
