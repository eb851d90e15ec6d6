from math import comb

import torch


BEZIER_MATRIX = [[1, 0, 0, 0],
                 [-3, 3, 0, 0],
                 [3, -6, 3, 0],
                 [-1, 3, -3, 1]]


def as_parameter(t, dtype=torch.float32) -> torch.Tensor:
    """
    Convert a scalar, sequence or tensor parameter to a 1D tensor.

    Parameters:
        t: float, sequence of floats or tensor of any shape.
        dtype: dtype of the result.

    Returns:
        t: 1D tensor, flattened copy of the input.
    """
    return torch.as_tensor(t, dtype=dtype).reshape(-1)


def lerp(a: torch.Tensor, b: torch.Tensor, t: torch.Tensor) -> torch.Tensor:
    return a + (b - a) * t


def bernstein_basis(t: torch.Tensor, degree=3) -> torch.Tensor:
    """
    Bernstein polynomials of the given degree evaluated at t.

    Parameters:
        t: 1D tensor of local parameters in [0, 1].
        degree: int, polynomial degree.

    Returns:
        basis: tensor of shape (len(t), degree + 1).
    """
    t = t[..., None]
    i = torch.arange(degree + 1, dtype=t.dtype, device=t.device)
    binomial = torch.tensor([comb(degree, k) for k in range(degree + 1)], dtype=t.dtype, device=t.device)
    return binomial * (1 - t) ** (degree - i) * t ** i
