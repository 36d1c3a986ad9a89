"""
features: Pixel Tables and Feature Preparation
==============================================

Loads the labeled training pixels, collapses the land-cover class to a
binary BlueTarp / NonBlueTarp target, standardizes the color channels, and
parses the loosely formatted hold-out pixel files.

Modules:
---------
- pixels.py  : load_pixel_table (local path or URL), binarize_labels.
- scaling.py : ChannelScaler (fit once, reuse for scoring), scale_for_scoring.
- holdout.py : parse_holdout_file / parse_holdout_dir, assign_holdout_labels.

Columns:
---------
- Red, Green, Blue : 8-bit channel values (0..255), standardized before fitting.
- y / y_name       : 1 = BlueTarp, 0 = NonBlueTarp.
"""
