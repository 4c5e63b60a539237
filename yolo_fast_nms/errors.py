class YoloFastNMSError(ValueError):
    """Base class for fatal input errors raised by the pipeline."""


class ShapeMismatchError(YoloFastNMSError):
    """Buffer or array does not match the declared `(rows, columns)` shape."""


class DegenerateRowError(YoloFastNMSError):
    """Rows carry no class scores (4 columns or fewer)."""

    def __init__(self, columns: int):
        super().__init__(
            f"Each row needs 4 box values plus at least one class score, got {columns} columns."
        )
        self.columns = columns
