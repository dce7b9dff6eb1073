"""Content-aware cropping.

Submodules
----------
geometry
    Dimensions, rectangles and the safe-resize calculator.
entropy
    Histogram entropy used to rank slices.
safe_zones
    Safe-zone merging, downscale limiting and rescaling.
slicer
    Per-axis bisection search for the crop offset.
planner
    ``CropPlanner`` tying the above together.
primitives
    Pillow implementations of the pixel operations.
detector
    OpenCV face detection producing safe zones.
overlay
    Debug drawing of safe zones.
io_utils
    File I/O utilities and helpers.
crop_auto
    Batch cropping workflow.
"""
