# orbfeatures

ORB keypoint extraction and binary descriptor matching, written with numpy.

The package does the following:

* builds a scale pyramid; borders are mirrored without repeating the edge pixel;
* detects FAST-9 corners cell by cell on every pyramid level;
* spreads the keypoints evenly over each level with a quadtree and keeps the strongest one in each cell;
* gives each keypoint an orientation from the intensity centroid of a circular patch;
* computes rotated 256-bit binary descriptors (32 bytes) on a Gaussian-blurred copy of each level;
* matches descriptors by Hamming distance, with a nearest-neighbour ratio test and a rotation-consistency check.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Extracting features

```python
import numpy as np
from orbfeatures.extractor import ORBExtractor

image = np.random.default_rng(0).integers(0, 256, (480, 640), dtype=np.uint8)

extractor = ORBExtractor(1000, 1.2, 8, 20, 7)
keypoints, descriptors = extractor(image, None)
```

The arguments are the number of features, the scale factor between pyramid levels, the number of levels, and the initial and fallback FAST thresholds. The defaults are `1000, 1.2, 8, 20, 7`.

The image must be a 2-D `uint8` array. An empty image gives no keypoints. The `mask` argument is accepted but not used.

`keypoints` is a list of `orbfeatures.keypoint.KeyPoint`. Each keypoint holds its position (`x`, `y`, and `pt` as a pair) in level-0 coordinates, its `angle` in degrees, its `octave`, its `size` and its `response`. `descriptors` is an `N x 32` array of `uint8`, one row for each keypoint.

The steps can also be run one by one:

* `ORBExtractor.compute_pyramid` builds the pyramid.
* `ORBExtractor.compute_keypoints_octtree` detects and orients keypoints per level using the quadtree.
* `ORBExtractor.compute_keypoints_old` uses a fixed grid and hands unused budget on to other cells.

The lower-level pieces are also available:

* `orbfeatures.fast.fast_detect`
* `orbfeatures.octree.distribute_oct_tree` and `ExtractorNode`
* `orbfeatures.descriptor`: `ic_angle`, `compute_orientation`, `compute_orb_descriptor`, `compute_descriptors`
* `orbfeatures.image`: `pad_reflect101`, `resize_linear`, `gaussian_blur`, `build_pyramid`
* `orbfeatures.pattern`: `pattern_points`, `circular_umax`
* `orbfeatures.keypoint.retain_best`

## Matching

```python
from orbfeatures.hamming import descriptor_distance
from orbfeatures.matcher import ORBMatcher

distance = descriptor_distance(descriptors[0], descriptors[1])

matcher = ORBMatcher(0.9, True)
```

The defaults are a ratio of `0.6`, with the orientation check on. The matcher provides two searches.

`ORBMatcher.search_for_initialization` matches the finest-level keypoints of the first set. For each one it searches a square window around its earlier position in the second set. It returns two things:

* the match index of each keypoint of the first set, or `None`;
* the updated positions, where each matched keypoint takes the position of its match.

`ORBMatcher.search_by_bow` matches only features that share a vocabulary node. Each feature vector is a mapping from node id to feature indices, and the caller must supply it. For each keypoint of the first set, the search returns its match index in the second set, or `None`.

`orbfeatures.matcher.features_in_area` returns the indices of keypoints inside a square window. The octave can be limited to a range of levels.

## Helpers

* `orbfeatures.geometry` holds the geometric helpers:
  * `radius_by_viewing_cos`
  * `check_dist_epipolar_line`
  * `decompose_sim3`
  * `project_point`
* `orbfeatures.hamming` holds the rotation-histogram helpers:
  * `compute_three_maxima`
  * `rotation_histogram_bin`
  * `inconsistent_rotations`
* `orbfeatures.hamming` also defines the thresholds `TH_LOW`, `TH_HIGH` and `HISTO_LENGTH`.

## What this package does not do

The package has no command-line tool. It works on features and descriptors only.

It has no map, frames, keyframes or map points. That means it cannot do the following:

* search by projecting map points into a frame;
* fuse duplicate points;
* match under a similarity transform;
* search for triangulation.

It does no tracking, no bundle adjustment and no pose optimisation.

It has no vocabulary. Bag-of-words feature vectors must come from elsewhere.