"""FlowState - Activity scoring and break prediction

Philosophy:
    Watch how someone works, not what they say about it.
    Typing without reaching for the mouse is focus.
    Silence that lasts is a pause worth noticing.

Components:
    score_engine.py: Turn one second of input activity into a 0-100 score
        - Keystroke buckets, mouse travel penalty, typing bonus
        - Exponential decay so the score fills fast and drains slowly

    idle_detector.py: Hysteresis state machine over the score stream
        - 10s below threshold to declare idle, 5s above to recover

    session_tracker.py: Focus session lifecycle
        - 30s sustained focus opens a session, anchored at onset
        - Completed sessions become SessionRecords

    break_predictor.py: Break suggestions learned from history
        - Duration, trend and low-score heuristic
        - Recency-weighted optimal session length

    history_store.py: SQLite-backed samples and sessions
        - In-memory cache, serialized background writes
        - 7-day sample retention, sessions kept forever

    monitor.py: Per-tick orchestration and event listeners

Database: data/flowstate.db
    - activity_samples: One row per scored tick
    - sessions: Completed focus sessions

Configuration: args/flowstate.yaml
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / 'data'
DB_PATH = DATA_DIR / 'flowstate.db'
CONFIG_PATH = PROJECT_ROOT / 'args' / 'flowstate.yaml'

__version__ = '0.1.0'

__all__ = [
    'PROJECT_ROOT',
    'DATA_DIR',
    'DB_PATH',
    'CONFIG_PATH',
    '__version__',
]
