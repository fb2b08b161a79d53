"""
Upload, list, download and share files
"""
import asyncio
from pathlib import Path
from firestarter import FirestarterClient, SQLiteStorage


def on_progress(percent: int):
    print(f"\r  {percent}%", end="", flush=True)


async def main():
    storage = SQLiteStorage("state")
    async with FirestarterClient(storage) as fs:
        if fs.resume() is None:
            await fs.login("myusername", "mypassword")

        # Upload bytes; keep the display name, it is what download needs
        result = await fs.upload(b"Hello, Pipe!", "hello.txt", on_progress=on_progress)
        print(f"\nUploaded {result.display_name} ({result.identifier[:16]})")

        # Upload a local file with extra metadata kept in the manifest
        readme = Path(__file__)
        await fs.upload(readme, metadata={"kind": "example"})

        print("\nTracked files:")
        for record in fs.list_files():
            print(f"  {record.display_name:30} {record.size:>8,} bytes")

        data = await fs.download("hello.txt")
        print(f"\nDownloaded: {data.decode()}")

        link = await fs.create_public_link("hello.txt", custom_title="Hello")
        print(f"Public URL: {link.share_url}")

    storage.close()


if __name__ == "__main__":
    asyncio.run(main())
