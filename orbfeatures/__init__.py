"""ORB keypoint extraction over a scale pyramid, binary descriptors, and Hamming-distance matching."""

__version__ = "0.1.0"