"""
Help Texts for XRD Plotter
"""

HELP_TEXTS = {
    # File upload
    'file_upload': """
    **Supported file formats:**
    - `.xrdml`: PANalytical XRDML
    - `.xy`, `.txt`: Two-column format (2θ, intensity)
    - `.csv`: CSV with 2θ and intensity columns
    - `.ras`: Rigaku RAS format

    Upload all patterns you want to compare at once.
    """,

    'name_pattern': """
    **Sample Name Pattern:**
    Regular expression applied to each filename. The first group in
    parentheses becomes the sample name.

    Default: `.*?(J_[A-Za-z0-9_]+)_\\..*$` turns
    `scan_J_DI_250_AD_.xrdml` into `J_DI_250_AD`.
    Filenames that do not match keep their full name.
    """,

    # Merge
    'angle_tolerance': """
    **2θ Tolerance:**
    Angles from different files that differ by less than this value are
    treated as the same row when merging. Use 0 for exact matching.
    A sample without a value at some angle shows a gap there.
    """,

    # Offsets
    'auto_step': """
    **Offset Step:**
    Vertical distance between neighbouring patterns. The first pattern
    stays at 0, the second is shifted by one step, and so on.
    """,

    'auto_adjust_percent': """
    **Step Adjustment (%):**
    Shrinks or stretches the offset step.
    -50 halves the spacing, +100 doubles it.
    """,

    'custom_offsets': """
    **Custom Offsets:**
    One `sample = offset` per line, using the sample names before the
    trailing underscore is removed. Samples not listed continue above the
    highest custom offset. Unknown names are ignored with a warning.
    """,

    'order_method': """
    **Sample Order:**
    - **reverse:** Z to A (default)
    - **alphabetical:** A to Z
    - **as_is:** Order of the loaded files
    """,

    'remove_trailing': """
    **Remove Trailing Underscore:**
    Drops one `_` at the end of each sample name for display.
    """,

    # Plotting
    'smoothing': """
    **Moving Average:**
    Centered mean over the given number of points. Points near either end
    of a scan, where the full window does not fit, keep their raw value.
    """,

    'sqrt_transform': """
    **√ Intensity:**
    Plot the square root of the intensity, which brings weak reflections
    closer to strong ones.
    """,

    'palette': """
    **Palette:**
    Colors used for the patterns, in order. They repeat when there are more
    patterns than colors.
    """,

    # Export
    'export': """
    **Export Options:**
    - **CSV:** Merged or offset table; missing values are empty fields
    - **HTML:** Interactive plot for viewing in browser
    - **ZIP:** Per-sample and combined PNG plots
    """,
}


def get_help(topic: str) -> str:
    """
    Get help text for a topic

    Args:
        topic: Topic key

    Returns:
        Help text string
    """
    return HELP_TEXTS.get(topic, "No help available for this topic.")
