"""
XRD Workflow Module
Runs import, merge, transform, plotting and export for one directory
"""

import os
from typing import Dict, Optional

from components.plots import plot_xrd_patterns
from components.styles import get_style
from tools.data_loader import load_xrd_directory
from tools.export import create_zip_archive, export_table_csv
from tools.merge import merge_xrd_series, table_summary
from tools.transform import OrderMethod, transform_xrd_data
from utils.config import load_settings
from utils.helpers import make_name_extractor
from utils.logger import log_info, log_merge_complete, log_plots_created


def run_xrd_workflow(directory: str,
                     settings: Optional[Dict] = None,
                     output_dir: Optional[str] = None) -> Dict:
    """
    Read, merge, transform and plot every XRD file in a directory

    Args:
        directory: Directory containing XRD files
        settings: Complete settings (default: load_settings())
        output_dir: Root for all outputs; overrides the configured
            plot, zip and table directories

    Returns:
        Dictionary with 'merged' and 'transformed' tables, 'plots'
        (paths by kind), 'zip' (path or None) and 'tables' (CSV paths)
    """
    settings = settings or load_settings()
    import_cfg = settings['import']
    merge_cfg = settings['merge']
    transform_cfg = settings['transform']
    plot_cfg = settings['plot']
    export_cfg = settings['export']

    plot_dir = plot_cfg['output_dir']
    zip_dir = export_cfg['zip_dir']
    csv_dir = export_cfg['csv_dir']
    if output_dir is not None:
        plot_dir = os.path.join(output_dir, 'xrd_plots')
        zip_dir = os.path.join(output_dir, 'zip')
        csv_dir = os.path.join(output_dir, 'tables')

    # Import
    series_list = load_xrd_directory(
        directory,
        pattern=import_cfg['pattern'],
        recursive=import_cfg['recursive'],
        name_extractor=make_name_extractor(import_cfg['name_pattern']),
        show_progress=import_cfg['show_progress']
    )
    log_info("Sample names extracted: " + ", ".join(s.sample for s in series_list))

    # Merge
    theta_col = merge_cfg['theta_col']
    merged = merge_xrd_series(series_list, theta_col=theta_col,
                              angle_tolerance=merge_cfg['angle_tolerance'])
    summary = table_summary(merged, theta_col=theta_col)
    log_merge_complete(summary['n_rows'], summary['n_columns'], summary['theta_range'])
    for sample, n_missing in summary['missing'].items():
        if n_missing:
            log_info(f"{sample}: no data at {n_missing} of {summary['n_rows']} angles")

    # Transform
    order_method = OrderMethod.parse(transform_cfg['order_method'])
    transform_kwargs = dict(
        custom_offsets=transform_cfg['custom_offsets'],
        auto_step=transform_cfg['auto_step'],
        auto_adjust_percent=transform_cfg['auto_adjust_percent'],
        theta_col=theta_col,
        remove_trailing=transform_cfg['remove_trailing'],
        order_method=order_method
    )
    transformed = transform_xrd_data(merged, **transform_kwargs)
    if plot_cfg['apply_offsets']:
        plot_table = transformed
    else:
        transform_kwargs['custom_offsets'] = None
        plot_table = transform_xrd_data(merged, apply_offsets=False, **transform_kwargs)

    # Plot
    style_kwargs = {}
    if plot_cfg.get('palette'):
        style_kwargs['palette'] = plot_cfg['palette']
    style = get_style(plot_cfg['style'], **style_kwargs)

    plots = plot_xrd_patterns(
        plot_table,
        output_dir=plot_dir,
        ma_window=plot_cfg['ma_window'],
        style=style,
        pattern_prefix=plot_cfg['pattern_prefix'],
        sqrt_transform=plot_cfg['sqrt_transform']
    )
    plot_files = plots['raw'] + plots['smoothed'] + plots['combined']
    log_plots_created(len(plot_files), plot_dir)
    log_info(f"- Raw plots: {len(plots['raw'])} files in {os.path.join(plot_dir, 'raw')}")
    log_info(f"- Smoothed plots: {len(plots['smoothed'])} files in {os.path.join(plot_dir, 'smoothed')}")
    log_info(f"- Combined plots: {len(plots['combined'])} files in {os.path.join(plot_dir, 'combined')}")

    # Export
    zip_path = None
    if export_cfg['create_zip']:
        zip_path = create_zip_archive(plot_files, zip_dir=zip_dir, prefix=export_cfg['zip_prefix'])
        log_info(f"- Zip archive saved to: {zip_path}")

    tables = {}
    if export_cfg['write_csv']:
        tables['merged'] = export_table_csv(merged, os.path.join(csv_dir, 'merged.csv'))
        tables['transformed'] = export_table_csv(transformed, os.path.join(csv_dir, 'transformed.csv'))
        log_info(f"- Tables saved to: {csv_dir}")

    return {
        'merged': merged,
        'transformed': transformed,
        'plots': plots,
        'zip': zip_path,
        'tables': tables,
    }
