import asyncio
import logging

from database import AppointmentStore


async def keep_alive(store: AppointmentStore, interval: float):
    """Ping the store every ``interval`` seconds so a hosted database never idles out.

    A failed ping is logged and the next tick is the retry.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(store.ping)
            logging.info("Keep-alive ping succeeded")
        except Exception as e:
            logging.error(f"Keep-alive ping failed: {e}")


def start_keep_alive(store: AppointmentStore, interval: float) -> asyncio.Task:
    logging.info(f"Keep-alive job scheduled every {interval:g} seconds")
    return asyncio.create_task(keep_alive(store, interval))


async def stop_keep_alive(task: asyncio.Task):
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
