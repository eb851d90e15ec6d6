import logging
import os
import warnings
from abc import abstractmethod, ABC

import numpy as np
import torch

from bezierspline.errors import InvalidControlPoints, OutOfRangeParameter
from bezierspline.geometry.base import Entity
from bezierspline.geometry.explicit import PointCloud
from bezierspline.utils.math import BEZIER_MATRIX, as_parameter, bernstein_basis, lerp
from bezierspline.utils.parameters import BoolParameter, FloatParameter, IntParameter

logger = logging.getLogger(__name__)

PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def monomials(u: torch.Tensor, order=0) -> torch.Tensor:
    if order == 0:
        return torch.column_stack([torch.ones_like(u), u, u ** 2, u ** 3])
    if order == 1:
        return torch.column_stack([torch.zeros_like(u), torch.ones_like(u), 2 * u, 3 * (u ** 2)])
    if order == 2:
        return torch.column_stack([torch.zeros_like(u), torch.zeros_like(u), 2 * torch.ones_like(u), 6 * u])
    raise ValueError(f'Derivative of order {order} is not supported')


def polynomial(u: torch.Tensor, points: torch.Tensor, order=0) -> torch.Tensor:
    """
    Expanded cubic Bezier polynomial
    B(u) = p0 + u(-3p0+3p1) + u^2(3p0-6p1+3p2) + u^3(-p0+3p1-3p2+p3)
    or its derivative of the given order.

    Parameters:
        u: 1D tensor of local parameters.
        points: control points, (4, dim) shared by every u or (len(u), 4, dim).

    Returns:
        positions: tensor of shape (len(u), dim).
    """
    matrix = torch.tensor(BEZIER_MATRIX, dtype=points.dtype, device=points.device)
    # weights first so that u = 0 and u = 1 pick p0 and p3 exactly
    weights = monomials(u.to(points.dtype), order) @ matrix
    return (weights.unsqueeze(-2) @ points).squeeze(-2)


def bernstein(u: torch.Tensor, points: torch.Tensor) -> torch.Tensor:
    return (bernstein_basis(u.to(points.dtype)).unsqueeze(-2) @ points).squeeze(-2)


def de_casteljau(u: torch.Tensor, points: torch.Tensor) -> torch.Tensor:
    level = points.expand(len(u), *points.shape[-2:])
    u = u[:, None, None]
    while level.shape[-2] > 1:
        level = lerp(level[..., :-1, :], level[..., 1:, :], u)
    return level[..., 0, :]


class Parametric(Entity, ABC):
    CONTROL_POINT_COUNT = None

    def __init__(self, dtype=torch.float32, **kwargs):
        super().__init__(**kwargs)
        self.control_points = PointCloud(count=self.CONTROL_POINT_COUNT, dtype=dtype)

    @property
    def dtype(self) -> torch.dtype:
        return self.control_points.dtype

    def __call__(self, parameter):
        return self.forward(parameter)

    def evaluate(self, parameter) -> torch.Tensor:
        """Position at the parameter, (3,) for a scalar and (..., 3) for a tensor."""
        return self.forward(parameter)

    @abstractmethod
    def forward(self, parameter):
        pass

    @abstractmethod
    def gradient(self, parameter):
        pass

    @abstractmethod
    def gradgrad(self, parameter):
        pass

    def curvature(self, parameter) -> torch.Tensor:
        tangent = self.gradient(parameter)
        acceleration = self.gradgrad(parameter)
        binormal = torch.linalg.cross(tangent, acceleration, dim=-1)
        speed = torch.linalg.norm(tangent, dim=-1)
        curvature = torch.linalg.norm(binormal, dim=-1) / speed ** 3
        return torch.where(speed > 0, curvature, torch.zeros_like(curvature))

    def _shaped(self, values: torch.Tensor, parameter) -> torch.Tensor:
        return values.reshape(*torch.as_tensor(parameter).shape, values.shape[-1])


class CubicBezier(Parametric):
    CONTROL_POINT_COUNT = 4

    def __init__(self, points=None, **kwargs):
        super().__init__(**kwargs)
        if points is not None:
            self.control_points.points = torch.as_tensor(points, dtype=self.dtype).reshape(4, -1).clone()

    def _polynomial(self, t, order=0):
        u = as_parameter(t, self.dtype)
        return self._shaped(polynomial(u, self.control_points.points, order), t)

    def forward(self, t):
        return self._polynomial(t)

    def gradient(self, t):
        return self._polynomial(t, order=1)

    def gradgrad(self, t):
        return self._polynomial(t, order=2)

    def bernstein(self, t):
        u = as_parameter(t, self.dtype)
        return self._shaped(bernstein(u, self.control_points.points), t)

    def de_casteljau(self, t):
        u = as_parameter(t, self.dtype)
        return self._shaped(de_casteljau(u, self.control_points.points), t)


class BezierSpline(Parametric):
    """
    Chain of cubic Bezier segments sharing their endpoints.

    The control point buffer always holds 1 + 3 * segment_count points. Segment i
    owns the points [3i, 3i+1, 3i+2, 3i+3] and the last point is the open end
    where the next segment starts. The global parameter t lies in
    [0, segment_count]; its integer part selects the segment and its fractional
    part is the local parameter.
    """
    CONTROL_POINT_COUNT = 1
    MAX_SEGMENTS = 64
    RESOLUTION = 100

    def __init__(self, origin=None, segments=0, strict=False, **kwargs):
        super().__init__(**kwargs)
        self.strict = BoolParameter('strict', initial=strict)
        if origin is not None:
            self.control_points[0] = origin
        self.open_end = self.control_points[-1].clone()
        self.segments = IntParameter('segments', initial=segments, min=0, max=max(self.MAX_SEGMENTS, segments))
        self.t = FloatParameter('t', initial=0., min=0., max=0.)
        self.update()

    @property
    def segment_count(self) -> int:
        return max((len(self.control_points) - 1) // 3, 0)

    @property
    def tracking_point(self) -> torch.Tensor:
        return self.evaluate(self.t.value)

    def update(self):
        """Apply a changed `segments` parameter to the point buffer."""
        if self.segments.value != self.segment_count:
            self.set_segment_count(self.segments.value)
        self._sync_parameters()

    def add_segment(self):
        if len(self.control_points) > 0:
            self.open_end = self.control_points.pop()
        # three collapsed control points plus the new open end
        self.control_points.append(self.open_end, repeat=4)
        logger.debug('%s: added segment %d', self.name, self.segment_count - 1)
        self._sync_parameters()

    def remove_segment(self):
        if len(self.control_points) == 0:
            return
        self.open_end = self.control_points[-1].clone()
        self.control_points.truncate(len(self.control_points) - 4)
        self.control_points.append(self.open_end)
        logger.debug('%s: removed segment, %d left', self.name, self.segment_count)
        self._sync_parameters()

    def set_segment_count(self, count: int):
        count = max(int(count), 0)
        while self.segment_count < count:
            self.add_segment()
        while self.segment_count > count:
            self.remove_segment()

    def set_points(self, points):
        points = torch.as_tensor(points, dtype=self.dtype)
        if points.dim() != 2 or points.shape[-1] != self.control_points.dim:
            raise InvalidControlPoints(f'Expected points of shape (n, {self.control_points.dim}), '
                                       f'got {tuple(points.shape)}')
        if len(points) == 0 or (len(points) - 1) % 3 != 0:
            raise InvalidControlPoints(f'Point count has to be 1 + 3 * segments, got {len(points)}')
        self.control_points.points = points.clone()
        self.open_end = self.control_points[-1].clone()
        self._sync_parameters()

    def segment(self, i: int) -> torch.Tensor:
        if not 0 <= i < self.segment_count:
            raise IndexError(f'Segment {i} out of range for {self.segment_count} segments')
        return self.control_points.points[3 * i:3 * i + 4]

    def segment_curve(self, i: int) -> CubicBezier:
        return CubicBezier(points=self.segment(i), dtype=self.dtype, name=f'{self.name} segment {i}')

    def locate(self, t) -> tuple[torch.Tensor, torch.Tensor]:
        """
        Split the global parameter into segment indices and local parameters.

        Out of range values are clamped with a warning, or raise
        OutOfRangeParameter on a strict spline. NaN always raises.
        """
        # range checks run in the caller's precision, before casting to the point dtype
        requested = t if torch.is_tensor(t) else torch.as_tensor(t, dtype=torch.float64)
        requested = requested.reshape(-1)
        if not requested.is_floating_point():
            requested = requested.double()
        count = self.segment_count
        if torch.isnan(requested).any():
            raise OutOfRangeParameter(requested.tolist(), count)
        if ((requested < 0) | (requested > count)).any():
            if self.strict:
                raise OutOfRangeParameter(requested.tolist(), count)
            warnings.warn(f'Parameter outside of [0, {count}] is clamped', skip_file_prefixes=(PACKAGE_DIR,))
            requested = torch.clamp(requested, 0, count)
        t = as_parameter(requested, self.dtype)
        segment = torch.clamp(torch.floor(t).long(), max=max(count - 1, 0))
        return segment, t - segment

    def _gather(self, segment: torch.Tensor) -> torch.Tensor:
        indices = 3 * segment[:, None] + torch.arange(4)
        return self.control_points.points[indices]

    def _sample(self, t, evaluator, constant=None) -> torch.Tensor:
        segment, local = self.locate(t)
        if self.segment_count == 0:
            if constant is None:
                constant = self.control_points[0]
            values = constant.expand(len(local), -1).clone()
        else:
            values = evaluator(local, self._gather(segment))
        return self._shaped(values, t)

    def forward(self, t):
        return self._sample(t, polynomial)

    def gradient(self, t):
        return self._sample(t, lambda u, p: polynomial(u, p, order=1), torch.zeros_like(self.open_end))

    def gradgrad(self, t):
        return self._sample(t, lambda u, p: polynomial(u, p, order=2), torch.zeros_like(self.open_end))

    def evaluate_bernstein(self, t) -> torch.Tensor:
        return self._sample(t, bernstein)

    def evaluate_de_casteljau(self, t) -> torch.Tensor:
        return self._sample(t, de_casteljau)

    def tessellate(self, samples_per_segment: int = None) -> 'Tessellation':
        if samples_per_segment is None:
            samples_per_segment = self.RESOLUTION
        return Tessellation(self, samples_per_segment)

    def control_polygon(self) -> tuple[np.ndarray, np.ndarray]:
        nodes = self.control_points.points.detach().cpu().numpy()
        count = len(nodes)
        edges = np.column_stack([np.arange(count - 1), np.arange(1, count)]) if count > 1 \
            else np.zeros((0, 2), dtype=np.int64)
        return nodes, edges

    def handles(self) -> tuple[np.ndarray, np.ndarray]:
        """Lines from every segment's anchors to their handles: p0-p1 and p2-p3."""
        nodes = self.control_points.points.detach().cpu().numpy()
        starts = 3 * np.arange(self.segment_count)
        edges = np.stack([starts, starts + 1, starts + 2, starts + 3], axis=-1).reshape(-1, 2)
        return nodes, edges

    def _sync_parameters(self):
        count = self.segment_count
        self.segments.max = max(self.segments.max, count)
        self.segments.value = count
        self.t.set_range(max=float(count))


class Tessellation:
    """
    Samples of a spline, `samples_per_segment + 1` per segment with the shared
    joints emitted once. Every iteration re-reads the current control points.
    """

    def __init__(self, spline: BezierSpline, samples_per_segment: int):
        if samples_per_segment < 1:
            raise ValueError(f'At least one sample per segment is required, got {samples_per_segment}')
        self.spline = spline
        self.samples_per_segment = int(samples_per_segment)

    def __len__(self):
        return self.samples_per_segment * self.spline.segment_count + 1

    def __iter__(self):
        for chunk in self.chunks():
            yield from chunk

    def chunks(self):
        if self.spline.segment_count == 0:
            yield self.spline.control_points.points[:1].clone()
            return
        local = torch.arange(self.samples_per_segment + 1, dtype=self.spline.dtype) / self.samples_per_segment
        for i in range(self.spline.segment_count):
            u = local if i == 0 else local[1:]
            yield polynomial(u, self.spline.segment(i))

    def to_tensor(self) -> torch.Tensor:
        return torch.cat(list(self.chunks()), dim=0)

    def curve_network(self) -> tuple[np.ndarray, np.ndarray]:
        nodes = self.to_tensor().detach().cpu().numpy()
        edges = np.column_stack([np.arange(len(nodes) - 1), np.arange(1, len(nodes))])
        return nodes, edges
