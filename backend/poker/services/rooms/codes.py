import secrets

# No 0/O or 1/I, so codes survive being read aloud or typed from a screen
ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
ROOM_CODE_LENGTH = 6


def normalize_code(code: str) -> str:
    return (code or '').strip().upper()


class CodeGenerator:
    """Produces candidate room codes.

    A candidate is uniformly random per position and carries no uniqueness
    guarantee; the session service checks the room store and retries.
    """

    def __init__(self, length: int = ROOM_CODE_LENGTH, alphabet: str = ROOM_CODE_ALPHABET, rng=None):
        if length < 1:
            raise ValueError('code length must be positive')
        self.length = length
        self.alphabet = alphabet
        self.rng = rng or secrets.SystemRandom()

    def generate(self) -> str:
        return ''.join(self.rng.choice(self.alphabet) for _ in range(self.length))
