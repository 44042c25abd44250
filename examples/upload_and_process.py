import asyncio
import sys
from pathlib import Path

from mediaq import MediaQ


async def main(path: str):
    app = MediaQ(worker_concurrency=1)
    await app.setup()

    data = Path(path).read_bytes()
    record = await app.upload_media(
        data,
        Path(path).name,
        uploader_id=1,
        name=Path(path).stem,
        mime_type="image/jpeg",
        size=len(data),
    )
    print(f"queued media {record.id}")

    worker = asyncio.create_task(app.run_worker())
    while (await app.get_media(record.id))["status"] not in ("READY", "FAILED"):
        await asyncio.sleep(1)

    app.stop_worker()
    await worker
    print(await app.get_media(record.id))
    await app.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1]))
