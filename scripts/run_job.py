"""Script to run one transcription job immediately, outside its schedule."""

import argparse
import asyncio
import sys

sys.path.insert(0, ".")

from src.logging_config import configure_logging
from src.worker import build_worker

JOB_CHOICES = ("transcription-job", "transcription-status-checker-job")


async def main(job_name: str) -> int:
    """Run the named job once under the scheduler's deadline and logging."""
    worker = build_worker()
    job = {
        worker.transcription_job.name: worker.transcription_job,
        worker.status_checker_job.name: worker.status_checker_job,
    }[job_name]

    try:
        ok = await worker.scheduler.run_job(job)
        active = await worker.ledger.list_active()
    finally:
        await worker.close()

    print("\n" + "=" * 60)
    print(f"{job_name}: {'SUCCEEDED' if ok else 'FAILED'}")
    print(f"Active batches in ledger: {len(active)}")
    for batch_id in active:
        print(f"  - {batch_id}")
    print("=" * 60)
    return 0 if ok else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("job", choices=JOB_CHOICES)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args.job)))
