"""
    track_errors: the things that can go wrong while analysing a track
"""


class TrackError(Exception):
    """
    base class for everything raised by the stop analysis pipeline
    """


class EmptyTrackError(TrackError):
    """
    the track has no segment with at least two usable (timed) points
    """


class NonMonotonicTimeError(TrackError):
    """
    a sample is timestamped earlier than the sample before it
    """

    def __init__(self, row, elapsed_s):
        super().__init__(
            f"timestamp at row {row + 1} is {-elapsed_s:.3f}s earlier "
            f"than row {row}"
        )
        self.row = row
        self.elapsed_s = elapsed_s


class InvalidThresholdError(TrackError, ValueError):
    """
    stop detector parameters out of range
    """


class RenderError(TrackError):
    """
    the plotting or mapping library failed to produce an artifact
    """


class DegenerateSampleWarning(UserWarning):
    """
    two consecutive samples share a timestamp, so speed is undefined and
    has been reported as zero
    """
