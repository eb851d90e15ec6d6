from abc import ABC
from copy import copy


class Parameter(ABC):
    def __init__(self, name: str, initial, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.initial = initial
        self._value = None
        self.value = copy(self.initial)

    def __float__(self):
        return float(self.value)

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name}={self.value})'

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value

    def reset(self, initial=None):
        if initial is not None:
            self.initial = initial
        self.value = copy(self.initial)


class BoolParameter(Parameter):
    def __bool__(self):
        return self.value

    @Parameter.value.setter
    def value(self, value):
        self._value = bool(value)


class FloatParameter(Parameter):
    def __init__(self, *args, min=-1., max=1., **kwargs):
        self.min = min
        self.max = max
        super().__init__(*args, **kwargs)

    @Parameter.value.setter
    def value(self, value):
        self._value = min(max(float(value), self.min), self.max)

    def set_range(self, min=None, max=None):
        if min is not None:
            self.min = min
        if max is not None:
            self.max = max
        self.value = self._value


class IntParameter(Parameter):
    def __init__(self, *args, min=-1, max=1, **kwargs):
        self.min = min
        self.max = max
        super().__init__(*args, **kwargs)

    def __int__(self):
        return self.value

    @Parameter.value.setter
    def value(self, value):
        self._value = min(max(int(value), self.min), self.max)
