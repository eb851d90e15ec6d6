import torch

from bezierspline.geometry.base import Entity


class Explicit(Entity):
    pass


class PointCloud(Explicit):
    def __init__(self, count=1, dim=3, dtype=torch.float32, **kwargs):
        super().__init__(**kwargs)
        self.dim = dim
        self.points = torch.zeros((count, dim), dtype=dtype)

    @property
    def count(self) -> int:
        return self.points.shape[0]

    @property
    def dtype(self) -> torch.dtype:
        return self.points.dtype

    def __len__(self):
        return self.count

    def __getitem__(self, i):
        return self.points[i]

    def __setitem__(self, i, value):
        self.points[i] = torch.as_tensor(value, dtype=self.dtype)

    def append(self, point: torch.Tensor, repeat=1):
        point = torch.as_tensor(point, dtype=self.dtype).reshape(1, self.dim)
        self.points = torch.cat([self.points, point.expand(repeat, self.dim)], dim=0)

    def pop(self) -> torch.Tensor:
        last = self.points[-1].clone()
        self.points = self.points[:-1].clone()
        return last

    def truncate(self, count: int):
        self.points = self.points[:max(count, 0)].clone()
