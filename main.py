# NMR_Analysis/main.py

import argparse
import logging
import os
import sys

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)-8s] %(name)-25s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
log = logging.getLogger('main')

project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)
    log.debug(f"Added project root to sys.path: {project_root}")

from nmr_engine import NMRAnalysisEngine, NMREngineError
from nmr_engine.data_import.config import load_config
from nmr_engine.reporting import write_data, write_spline_data, write_peak_data, write_report, format_peak_table

SPLINE_PLOT_POINTS = 2000


def run_analysis(config_path: str) -> int:
    try:
        config = load_config(config_path)
    except NMREngineError as e:
        log.critical(f"Failed to read configuration file '{config_path}': {e}"); return 1
    log.info(f"Config: {config.to_dict()}")

    engine = NMRAnalysisEngine()
    try:
        result = engine.run_analysis(config)
        data = engine.data
        write_data("shifted_data.txt", data.raw_data['shift'].values - data.tms_shift, data.raw_data['intensity'].values,
                   header=f"Data after TMS calibration (shifted {data.tms_shift:.6f} ppm)")
        if config.filtering_enabled:
            write_data("filtered_data.txt", data.processed_data['shift'].values, data.processed_data['intensity'].values,
                       header=f"Data after {config.filter_type_name} filtering")
        x_min, x_max = data.spline.x_range
        write_spline_data("spline_fit.txt", data.spline, x_min, x_max, SPLINE_PLOT_POINTS)
        write_peak_data("peak_data.txt", result['peaks'], config.baseline_adjustment)
        print(f"\n{config.integration_type_name} Integration\n")
        print(format_peak_table(result['peaks']))
        write_report(config.output_filename, config, result['peaks'], result['tms_shift'], result['elapsed'])
    except NMREngineError as e:
        log.critical(f"Analysis failed: {e}"); return 1
    log.info("Analysis complete.")
    return 0


def serve(host: str, port: int, use_waitress: bool) -> int:
    try:
        from api_server import create_app
        flask_app = create_app()
        log.info("Flask app created successfully.")
    except Exception as e:
        log.critical(f"Failed to create the Flask app instance: {e}", exc_info=True); return 1

    if use_waitress:
        from waitress import serve as waitress_serve
        log.info(f"Starting production server (Waitress) on http://{host}:{port}")
        try: waitress_serve(flask_app, host=host, port=port, threads=8)
        except Exception as e: log.critical(f"Waitress server failed: {e}", exc_info=True); return 1
    else:
        log.info(f"Starting Flask dev server on http://{host}:{port}")
        log.warning("Flask dev server is NOT suitable for production.")
        try: flask_app.run(host=host, port=port, debug=True)
        except Exception as e: log.critical(f"Flask dev server failed: {e}", exc_info=True); return 1
    log.info("Application server stopped.")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="NMR spectrum peak integration")
    parser.add_argument('config', nargs='?', default='nmr.in', help="nmr.in style or YAML configuration file")
    parser.add_argument('--serve', action='store_true', help="run the HTTP API instead of a one-shot analysis")
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=5000)
    parser.add_argument('--waitress', action='store_true', help="serve with Waitress instead of the Flask dev server")
    args = parser.parse_args(argv)

    log.info("=========================================")
    log.info("     NMR Spectrum Analysis - Main Entry   ")
    log.info("=========================================")
    if args.serve: return serve(args.host, args.port, args.waitress)
    return run_analysis(args.config)


if __name__ == '__main__':
    sys.exit(main())
