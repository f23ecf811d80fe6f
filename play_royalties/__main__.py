"""Entry point for replaying recorded listening sessions"""
import datetime
import logging
import os
import sys
import traceback

from play_royalties.accrual import AccrualService
from play_royalties.config import settings
from play_royalties.db import db
from play_royalties.replay import load_session_logs, replay_session
from play_royalties.utils.json_encoder import json_dumps

logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
logger = logging.getLogger(__name__)

def run() -> None:
    """Replay all session logs and write the registrations they produce."""
    try:
        db.init()

        safe_config = settings.model_dump(exclude={'DB_PASSWORD', 'DATABASE_URL', 'JWT_SECRET'})
        logger.info("Using configuration:")
        logger.info(json_dumps(safe_config, indent=2))

        service = AccrualService(db, settings.accrual_policy)
        results = []
        for name, session_log in load_session_logs(settings.INPUT_DIR):
            logger.info(f"Replaying {name}")
            outcome = replay_session(service, session_log, settings)
            outcome['file'] = name
            results.append(outcome)

        output_path = os.path.join(settings.OUTPUT_DIR, "results.json")
        with open(output_path, 'w') as f:
            f.write(json_dumps({
                'generated_at': datetime.datetime.now(datetime.timezone.utc),
                'sessions': results
            }, indent=2))

        logger.info(f"Replay complete: {len(results)} sessions written to {output_path}")

    except Exception as e:
        logger.error(f"Error during replay: {e}")
        traceback.print_exc()
        sys.exit(1)
    finally:
        db.dispose()

if __name__ == "__main__":
    run()
