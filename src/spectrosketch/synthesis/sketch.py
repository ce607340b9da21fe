"""
Headless drawing surface for authoring intensity grids.

Coordinates follow a screen canvas: x runs left to right over time columns,
y runs top to bottom, so y = 0 paints the highest mel band. Cell values are
clamped to [0, 1].
"""

import math

import numpy as np


class SketchGrid:
    """
    A (cols, rows) grid painted with a soft round brush.

    Parameters
    ----------
    cols : int
        Number of time columns
    rows : int
        Number of mel bands
    cell_size : float
        Size of one cell in brush units (pixels on the original canvas)
    brush_radius : float
        Brush radius in the same units
    brush_intensity : float
        Paint deposited per unit of drag distance
    stride : float
        Spacing of brush dabs along a drag, in normalized canvas units
    """

    def __init__(self, cols=100, rows=80, cell_size=10.0, brush_radius=60.0,
                 brush_intensity=5.0, stride=0.01):
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Grid must have positive size, got {cols}x{rows}")
        if brush_radius <= 0:
            raise ValueError(f"brush_radius must be positive, got {brush_radius}")
        self.cols = cols
        self.rows = rows
        self.cell_size = cell_size
        self.brush_radius = brush_radius
        self.brush_intensity = brush_intensity
        self.stride = stride
        self.grid = np.zeros((cols, rows))

    def stroke(self, x, y, intensity, radius=None):
        """
        Deposit one brush dab centred at normalized (x, y).

        Every cell within radius (default brush_radius) gains
        intensity * (1 - d / radius) ** 2.
        """
        radius = self.brush_radius if radius is None else radius
        center_x = math.floor(x * self.cols + 0.5)
        center_y = math.floor(y * self.rows + 0.5)
        radius_cells = math.ceil(radius / self.cell_size)

        for dy in range(-radius_cells, radius_cells + 1):
            for dx in range(-radius_cells, radius_cells + 1):
                cell_x = center_x + dx
                cell_y = center_y + dy
                if not (0 <= cell_x < self.cols and 0 <= cell_y < self.rows):
                    continue

                distance = math.hypot(dx * self.cell_size, dy * self.cell_size)
                if distance <= radius:
                    row = self.rows - 1 - cell_y
                    value = self.grid[cell_x, row] + intensity * (1 - distance / radius) ** 2
                    self.grid[cell_x, row] = min(1.0, value)

    def drag(self, x0, y0, x1, y1):
        """Paint along a segment the way a mouse drag does, one dab per stride."""
        px, py = x0, y0
        while True:
            dx = x1 - px
            dy = y1 - py
            length = math.hypot(dx, dy)
            if length < self.stride:
                break
            px += self.stride * dx / length
            py += self.stride * dy / length
            self.stroke(px, py, self.brush_intensity * self.stride)
        self.stroke(x1, y1, self.brush_intensity * length)

    def resize_brush(self, delta):
        """Grow or shrink the brush, never below radius 1."""
        self.brush_radius = max(1.0, self.brush_radius + delta)

    def clear(self):
        self.grid = np.zeros((self.cols, self.rows))

    def to_array(self):
        """Copy of the grid, shape (cols, rows), row 0 = lowest band."""
        return self.grid.copy()
