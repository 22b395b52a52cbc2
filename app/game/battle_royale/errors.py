class BattleRoyaleError(Exception):
    pass


class BattleRoyaleSessionNotFoundError(BattleRoyaleError):
    pass


class BattleRoyaleParticipantNotFoundError(BattleRoyaleError):
    pass


class BattleRoyaleQuestionNotFoundError(BattleRoyaleError):
    pass


class InvalidSessionStateError(BattleRoyaleError):
    pass


class BattleRoyaleSessionFullError(BattleRoyaleError):
    pass


class NicknameTakenError(BattleRoyaleError):
    pass


class InsufficientParticipantsError(BattleRoyaleError):
    pass


class PowerUpNotAvailableError(BattleRoyaleError):
    pass


class RoundConflictError(BattleRoyaleError):
    pass


class BattleRoyaleValidationError(BattleRoyaleError):
    pass
