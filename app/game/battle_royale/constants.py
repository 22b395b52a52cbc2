from __future__ import annotations

from decimal import Decimal

BATTLE_ROYALE_STATUS_WAITING = "WAITING"
BATTLE_ROYALE_STATUS_ACTIVE = "ACTIVE"
BATTLE_ROYALE_STATUS_ENDED = "ENDED"

BATTLE_ROYALE_MIN_PARTICIPANTS_TO_START = 4
BATTLE_ROYALE_MIN_MAX_PARTICIPANTS = 4
BATTLE_ROYALE_MAX_MAX_PARTICIPANTS = 100
BATTLE_ROYALE_DEFAULT_ELIMINATION_INTERVAL_SECONDS = 30
BATTLE_ROYALE_MIN_ELIMINATION_INTERVAL_SECONDS = 10
BATTLE_ROYALE_MAX_ELIMINATION_INTERVAL_SECONDS = 120
BATTLE_ROYALE_NICKNAME_MAX_LENGTH = 50

HEALTH_CEILING = 100
WRONG_ANSWER_DAMAGE = 5
CORRECT_ANSWER_HEALTH_GAIN_CAP = 10
HEALTH_GAIN_POINTS_PER_HP = 100
HEALTH_BOOST_AMOUNT = 25

STREAK_BONUS_THRESHOLD = 3
STREAK_BONUS_OFFSET = 2
STREAK_BONUS_PER_STEP = Decimal("0.1")
DOUBLE_POINTS_FACTOR = Decimal("2")
TIME_FREEZE_BONUS = Decimal("0.5")
TIME_FREEZE_FAST_ANSWER_SECONDS = 5.0

POWER_UP_DROP_CHANCE = 0.15

OFFLINE_TIMEOUT_SECONDS = 180
LEADERBOARD_CACHE_TTL_SECONDS = 3

# (minimum population, elimination rate), checked top to bottom. Four players
# fall into the 20% tier and the result is clamped up to one.
TIERED_ELIMINATION_RATES: tuple[tuple[int, Decimal], ...] = (
    (17, Decimal("0.30")),
    (9, Decimal("0.25")),
    (4, Decimal("0.20")),
)
HEALTH_BLENDED_ENDGAME_RATE = Decimal("0.25")
HEALTH_BLENDED_HEALTH_WEIGHT = 10

ELIMINATION_POLICY_TIERED = "tiered"
ELIMINATION_POLICY_HEALTH_BLENDED = "health_blended"

SCORING_PROFILE_STANDARD = "standard"
SCORING_PROFILE_ARENA = "arena"

EVENT_PARTICIPANT_JOINED = "participant.joined"
EVENT_PARTICIPANT_ELIMINATED = "participant.eliminated"
EVENT_ELIMINATION_ROUND = "elimination.round"
EVENT_BATTLE_ROYALE_STARTED = "battle_royale.started"
EVENT_BATTLE_ROYALE_ENDED = "battle_royale.ended"
EVENT_LEADERBOARD_UPDATED = "leaderboard.updated"

AVATAR_STYLES = ("avataaars", "bottts", "identicon", "gridy", "micah")
AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/{style}/svg?seed={seed}"


def session_topic(session_id: object) -> str:
    return f"battle-royale-session.{session_id}"


def leaderboard_cache_key(*, session_id: object, round_no: int) -> str:
    return f"battle_royale:leaderboard:{session_id}:{round_no}"
