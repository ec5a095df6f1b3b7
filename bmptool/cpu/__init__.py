"""
CPU module for image pixel kernels.
"""

from .pixel_ops import amplify_cpu, invert_cpu, block_scale_cpu


__all__ = ['amplify_cpu', 'invert_cpu', 'block_scale_cpu']
