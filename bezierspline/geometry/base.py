from bezierspline.utils.parameters import Parameter


def default_name(cls) -> str:
    return ''.join(map(lambda x: x if x.islower() else " "+x.lower(), cls.__name__)).strip()


class Entity:
    def __init__(self, name=None, **kwargs):
        super().__init__(**kwargs)
        self.name = default_name(self.__class__) if name is None else name

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name!r})'

    @property
    def hparams(self) -> list[Parameter]:
        return [v for v in self.__dict__.values() if isinstance(v, Parameter)]
