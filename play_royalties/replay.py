"""Replays recorded playback tick logs through the tracker and the accrual service"""
import json
import logging
import os
from typing import Any, Dict, List, Tuple

from play_royalties.accrual import AccrualService
from play_royalties.config import Settings
from play_royalties.player import PlayerTracking
from play_royalties.services.local_submitter import ServiceSubmitter
from play_royalties.tracker import ListeningTracker

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ('content_id', 'content_type', 'duration_seconds', 'ticks')

def load_session_logs(input_dir: str) -> List[Tuple[str, Dict[str, Any]]]:
    """
    Read every *.json session log in input_dir, sorted by file name.

    A session log looks like:
        {"user_id": "u1", "content_id": "t1", "content_type": "song",
         "duration_seconds": 200, "artist_id": "a1",
         "ticks": [[0.0, true], [0.25, true], ...], "ended": true}
    """
    if not os.path.isdir(input_dir):
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    logs = []
    for name in sorted(os.listdir(input_dir)):
        if not name.endswith('.json'):
            continue
        path = os.path.join(input_dir, name)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise ValueError(f"Session log {name} is missing: {', '.join(missing)}")
        logs.append((name, data))

    if not logs:
        raise FileNotFoundError(f"No session logs found in {input_dir}")
    return logs

def replay_session(service: AccrualService, session_log: Dict[str, Any], settings: Settings) -> Dict[str, Any]:
    """Feed one session's ticks through a tracker and finalize it the way the player would"""
    user_id = session_log.get('user_id')

    if session_log.get('artist_id'):
        service.add_catalog_entry(
            session_log['content_id'],
            session_log['artist_id'],
            session_log['content_type'],
            session_log.get('title')
        )

    identity = lambda: user_id
    tracker = ListeningTracker(
        ServiceSubmitter(service, identity),
        identity,
        seek_threshold_seconds=settings.SEEK_THRESHOLD_SECONDS,
        threshold_ratio=settings.QUALIFYING_LISTEN_RATIO
    )
    player = PlayerTracking(tracker)
    player.load(session_log['content_id'], session_log['content_type'], float(session_log['duration_seconds']))

    logger.debug(f"Replaying {len(session_log['ticks'])} ticks for {session_log['content_id']}")
    for position, is_playing in session_log['ticks']:
        player.on_time_update(float(position), bool(is_playing))

    tracking = tracker.snapshot()
    if session_log.get('ended', True):
        registration = player.on_ended()
    else:
        registration = player.close()

    return {
        'user_id': user_id,
        'tracking': tracking,
        'registration': registration,
        'balance': service.balance(user_id) if user_id else None,
    }
