"""Soft-failure reasons raised while locating the board.

None of these are fatal: ``LegoBoardAnalyzer.analyze`` turns each of
them into an empty result so a capture loop keeps running when the
board is momentarily occluded.
"""


class BoardAnalysisError(Exception):
    """Base class for per-frame analysis failures."""

    reason: str = "analysis_failed"


class EmptySegmentation(BoardAnalysisError):
    """The segmentation service returned no predictions."""

    reason = "empty_segmentation"


class NoBoardFound(BoardAnalysisError):
    """No contour survived rasterising the segmentation polygon."""

    reason = "no_board_found"


class NotQuadrilateral(BoardAnalysisError):
    """The board contour did not simplify to exactly four corners."""

    reason = "not_quadrilateral"
