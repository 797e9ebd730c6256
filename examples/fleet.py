import asyncio
import logging
import os
import random

from lease_scheduler import RedisLockConfig, SchedulerConfig, Task, TaskScheduler

# Start this script in several terminals against the same Redis: "report" runs on
# one of them per second, "heartbeat" runs on all of them.


def heartbeat() -> str:
    return f"alive:{os.getpid()}"


async def report() -> str:
    await asyncio.sleep(random.uniform(0.1, 0.5))
    print(f"[{os.getpid()}] generated report")
    return "report done"


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SchedulerConfig.from_env()
    if not config.locking_enabled:
        config = SchedulerConfig(redis=RedisLockConfig(dsn="redis://localhost:6379/1"))

    scheduler = TaskScheduler(config)
    scheduler.add_task(Task(name="heartbeat", spec="*/5 * * * * *", executor=heartbeat, result_capacity=3))
    scheduler.add_task(Task(name="report", spec="* * * * * *", executor=report, result_capacity=5, should_lock=True, lock_expire=3))

    async with scheduler:
        for _ in range(10):
            await asyncio.sleep(1)
            print(f"locks held here: {scheduler.scan_locked_tasks()}")
        print(f"heartbeat results: {scheduler.get_result('heartbeat')}")
        print(f"report results: {scheduler.get_result('report')}")


if __name__ == "__main__":
    asyncio.run(main())
