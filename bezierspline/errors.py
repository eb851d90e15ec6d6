class SplineError(Exception):
    pass


class OutOfRangeParameter(SplineError, ValueError):
    def __init__(self, t, segment_count):
        super().__init__(f'Parameter {t} is outside of [0, {segment_count}]')
        self.t = t
        self.segment_count = segment_count


class InvalidControlPoints(SplineError, ValueError):
    pass
