class BlockbreakError(Exception):
    pass


class BlockSizeError(BlockbreakError, ValueError):
    """Input is not a whole number of blocks, or a block has the wrong size."""
    def __init__(self, length: int, block_size: int):
        self.length = length
        self.block_size = block_size
        super().__init__(f"Length {length} is not a multiple of block size {block_size}")


class PaddingError(BlockbreakError, ValueError):
    """PKCS#7 padding failed validation."""
    def __init__(self, reason: str):
        super().__init__(f"Invalid PKCS#7 padding: {reason}")


class AttackError(BlockbreakError, RuntimeError):
    """An attack hit a state its assumptions do not allow (wrong mode, broken oracle...)."""
    def __init__(self, message: str):
        super().__init__(f"Attack failed: {message}")
