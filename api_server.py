# NMR_Analysis/api_server.py

import os
import logging
from flask import Flask, request, jsonify # type: ignore
from flask_cors import CORS # type: ignore
from werkzeug.utils import secure_filename
import numpy as np
import pandas as pd
from typing import Optional

from nmr_engine import NMRAnalysisEngine, EngineState
from nmr_engine.core._exceptions import (
    NMREngineError, ConfigurationError, DataLoadingError, DataNotFoundError, ValidationError,
    ProcessingError, PeakDetectionError, IntegrationError, AnalysisError
)
from nmr_engine.processing.peak_detection import Peak

UPLOAD_FOLDER = os.path.abspath(os.path.join(os.path.dirname(__file__), 'data', 'uploads'))
ALLOWED_EXTENSIONS = {'txt', 'dat', 'asc', 'csv'}
ENGINE_ERRORS = (NMREngineError, ConfigurationError, DataLoadingError, DataNotFoundError, ValidationError,
                 ProcessingError, PeakDetectionError, IntegrationError, AnalysisError)

engine: Optional[NMRAnalysisEngine] = None
log = logging.getLogger('api_server')

def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS

def make_json_serializable(data):
    if isinstance(data, (np.ndarray, pd.Series)): return make_json_serializable(data.tolist())
    if isinstance(data, pd.DataFrame): return make_json_serializable(data.replace({np.nan: None}).to_dict(orient='list'))
    if isinstance(data, Peak): return make_json_serializable(data.to_dict())
    if isinstance(data, dict): return {k: make_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)): return [make_json_serializable(item) for item in data]
    if isinstance(data, (np.integer,)): return int(data)
    if isinstance(data, (float, np.floating)):
        if np.isnan(data): return None
        if np.isinf(data): return str(data)
        return float(data)
    if isinstance(data, np.bool_): return bool(data)
    return data

def _error(message, code): return jsonify({'status': 'error', 'message': message}), code

def create_app(testing: bool = False):
    global engine
    if engine is None or testing:
        try:
            engine = NMRAnalysisEngine()
            log.info("NMR Analysis Engine initialized.")
        except Exception as e:
            log.critical(f"CRITICAL: Failed to initialize NMRAnalysisEngine: {e}", exc_info=True)
            raise RuntimeError("Failed to initialize analysis engine.") from e

    app = Flask(__name__, static_folder=None)
    app.config['UPLOAD_FOLDER'] = UPLOAD_FOLDER
    app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024
    app.config['TESTING'] = testing
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    log.info("Flask app created with CORS enabled for /api/*.")

    @app.route('/api/status', methods=['GET'])
    def get_status():
        state = engine.state.name
        status_info = {'engine_state': state, 'loaded_file': engine.data.source_filepath, 'tms_shift': engine.data.tms_shift,
                       'has_spline': engine.data.has_data('spline'), 'has_peaks': engine.data.has_data('peaks'), 'last_error': engine.last_error}
        return jsonify({'status': 'success', 'message': f'Engine state: {state}', 'data': status_info})

    @app.route('/api/load', methods=['POST'])
    def load_spectrum_data():
        if request.is_json:
            payload = request.get_json(silent=True) or {}
            if 'shift' not in payload or 'intensity' not in payload: return _error("JSON body needs 'shift' and 'intensity' arrays.", 400)
            try:
                engine.load_arrays(payload['shift'], payload['intensity'])
                return jsonify({'status': 'success', 'message': f'Loaded {len(engine.data.raw_data)} points.',
                                'data': {'spectrum': make_json_serializable(engine.data.raw_data)}})
            except ENGINE_ERRORS as e: log.error(f"Load failed: {e}"); return _error(str(e), 400)
        if 'spectrumFile' not in request.files: return _error('No file part', 400)
        file = request.files['spectrumFile']
        if file.filename == '': return _error('No selected file', 400)
        if not allowed_file(file.filename): return _error('File type not allowed', 400)
        filename = secure_filename(file.filename)
        filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
        try:
            file.save(filepath); log.info(f"Uploaded {filename}")
            engine.load_data(filepath)
            return jsonify({'status': 'success', 'message': f'Loaded {filename}.', 'data': {'spectrum': make_json_serializable(engine.data.raw_data)}})
        except ENGINE_ERRORS as e:
            log.error(f"Load failed '{filename}': {e}")
            if os.path.exists(filepath): os.remove(filepath)
            return _error(str(e), 400)
        except Exception as e:
            log.exception(f"Unexpected load error '{filename}': {e}")
            if os.path.exists(filepath): os.remove(filepath)
            return _error('Server load error.', 500)

    @app.route('/api/smooth', methods=['POST'])
    def smooth_spectrum_data():
        if engine.state not in [EngineState.DATA_LOADED, EngineState.CALIBRATED, EngineState.SMOOTHED]:
            return _error(f'Invalid state ({engine.state.name}) for smoothing.', 400)
        try:
            params = request.get_json(silent=True) or {}; log.info(f"Smoothing: {params}")
            method = params.pop('method', 'savitzky_golay')
            engine.smooth_data(method=method, params=params)
            return jsonify({'status': 'success', 'message': f'Smoothed ({method}).',
                            'data': {'smoothed_spectrum': make_json_serializable(engine.data.processed_data)}})
        except ENGINE_ERRORS as e: log.error(f"Smooth failed: {e}"); return _error(str(e), 400)
        except Exception as e: log.exception(f"Unexpected smooth error: {e}"); return _error('Server smooth error.', 500)

    @app.route('/api/analyze', methods=['POST'])
    def analyze_spectrum():
        if engine.state in [EngineState.INITIALIZED, EngineState.ERROR]:
            return _error(f'Invalid state ({engine.state.name}) for analysis.', 400)
        params = request.get_json(silent=True) or {}; log.info(f"Analyze: {params}")
        try:
            baseline = float(params.get('baseline', 0.0)); tolerance = float(params.get('tolerance', 1e-8))
            method = params.get('method', 0)
            if params.get('calibrate', False): engine.calibrate_tms(baseline)
            engine.fit_spline()
            engine.find_peaks(baseline)
            engine.integrate_peaks(method, tolerance)
            peaks = engine.quantify()
            data = {'peaks': make_json_serializable(peaks), 'tms_shift': engine.data.tms_shift}
            if params.get('cross_validate', False): data['cross_validation'] = make_json_serializable(engine.cross_validate_areas(tolerance))
            return jsonify({'status': 'success', 'message': f'Found {len(peaks)} peaks.', 'data': data})
        except (TypeError, ValueError) as e: log.error(f"Analyze params invalid: {e}"); return _error(f"Invalid parameters: {e}", 400)
        except ENGINE_ERRORS as e: log.error(f"Analyze failed: {e}"); return _error(str(e), 400)
        except Exception as e: log.exception(f"Unexpected analyze error: {e}"); return _error('Server analyze error.', 500)

    @app.route('/api/peaks', methods=['GET'])
    def get_peaks():
        peaks = engine.data.peaks or []
        return jsonify({'status': 'success', 'message': f'{len(peaks)} peaks.', 'data': {'peaks': make_json_serializable(peaks)}})

    @app.route('/api/spline', methods=['GET'])
    def get_spline_curve():
        if not engine.data.has_data('spline'): return _error('Spline not computed.', 400)
        try:
            num_points = int(request.args.get('points', 2000))
            curve = engine.sample_spline(num_points)
            return jsonify({'status': 'success', 'message': f'Spline sampled at {num_points} points.', 'data': {'curve': make_json_serializable(curve)}})
        except ValueError as e: return _error(f"Invalid 'points': {e}", 400)
        except ENGINE_ERRORS as e: log.error(f"Spline sampling failed: {e}"); return _error(str(e), 400)

    return app

if __name__ == '__main__':
     logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
     log = logging.getLogger('api_server_run')
     try:
         app = create_app()
         log.info("Starting Flask development server...")
         app.run(host='127.0.0.1', port=5000, debug=True)
     except Exception as e:
         log.critical(f"Failed to create or run Flask app: {e}", exc_info=True)
