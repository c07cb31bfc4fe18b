"""
Imaging Primitives.

Responsibilities:
- Color matrices, tone controls, white balance, sepia
- Geometric transforms that never grow the extent
- Premultiplied-alpha compositing and blend modes
- Procedural noise synthesis
"""

from . import color, geometry, blending, noise
