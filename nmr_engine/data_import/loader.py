# nmr_engine/data_import/loader.py
import logging
import os
import pandas as pd
import numpy as np
from typing import Optional, Any
from ..core._exceptions import DataLoadingError

log = logging.getLogger(__name__) # Use logger

def load_spectrum(filepath: str, file_format: Optional[str] = None, **kwargs: Any) -> Optional[pd.DataFrame]:
    """
    Loads a two-column spectrum (chemical shift, intensity) sorted by shift.

    Blank lines and lines starting with the comment character are skipped,
    and rows whose first two fields are not numeric are dropped.
    """
    # --- Determine Format ---
    if file_format is None:
        _, ext = os.path.splitext(filepath)
        ext = ext.lower()
        if ext == '.csv': file_format = 'csv'
        elif ext in ['.txt', '.dat', '.asc', '']: file_format = 'txt' # Whitespace separated
        else: raise DataLoadingError(f"Cannot determine file format for '{os.path.basename(filepath)}'. Please specify format.")
    else:
        file_format = file_format.lower()

    log.info(f"Attempting load: '{filepath}' (Format: {file_format})")
    log.debug(f"Loader kwargs received: {kwargs}")

    skip_rows = kwargs.get('skip_rows', 0)
    comment_char = kwargs.get('comment', '#')
    separator = kwargs.get('separator', ',' if file_format == 'csv' else r'\s+')
    if not isinstance(skip_rows, int) or skip_rows < 0:
         log.warning(f"Invalid skip_rows value ({skip_rows}), defaulting to 0.")
         skip_rows = 0

    if file_format not in ['csv', 'txt']:
        raise DataLoadingError(f"Unsupported file format: '{file_format}'")

    try:
        try:
             data = pd.read_csv(
                 filepath,
                 sep=separator,
                 header=None,
                 usecols=[0, 1],
                 names=['shift', 'intensity'],
                 skiprows=skip_rows,
                 comment=comment_char,
                 skip_blank_lines=True,
                 on_bad_lines='warn'
             )
             log.debug(f"Pandas read_csv finished. Initial shape: {data.shape}")
        except pd.errors.EmptyDataError:
            log.warning(f"File appears empty or contains only comments: {filepath}")
            return None
        except FileNotFoundError:
            raise
        except Exception as pd_err:
             raise DataLoadingError(f"Pandas read_csv failed for '{filepath}': {pd_err}")

        # --- Data Cleaning and Validation ---
        data['shift'] = pd.to_numeric(data['shift'], errors='coerce')
        data['intensity'] = pd.to_numeric(data['intensity'], errors='coerce')
        initial_rows = len(data)
        data.dropna(subset=['shift', 'intensity'], inplace=True)
        log.debug(f"Rows after dropna: {len(data)} (dropped {initial_rows - len(data)})")

        if data.empty:
            log.error(f"No numeric data points read from '{filepath}'.")
            return None

        if not data['shift'].is_monotonic_increasing:
            data = data.sort_values('shift', kind='mergesort')
            log.info("Data sorted in ascending order by shift.")
        else:
            log.debug("Data is already sorted in ascending order.")
        duplicates = int(data['shift'].duplicated().sum())
        if duplicates: log.warning(f"{duplicates} duplicate shift values in '{filepath}'; spline fitting needs strictly increasing x.")

        data = data.reset_index(drop=True)
        log.info(f"Read {len(data)} data points from {filepath}.")
        return data[['shift', 'intensity']]

    except FileNotFoundError:
        raise DataLoadingError(f"File not found at path: {filepath}") from None
    except DataLoadingError as e:
         log.error(f"DataLoadingError: {e}")
         raise
    except Exception as e:
        log.exception(f"An unexpected error occurred during loading of '{filepath}': {e}")
        raise DataLoadingError(f"Unexpected error processing file '{filepath}': {e}") from e


def spectrum_from_arrays(x, y) -> pd.DataFrame:
    """Builds the loader's DataFrame layout from in-memory arrays, sorted by shift."""
    x_arr = np.asarray(x, dtype=float).ravel(); y_arr = np.asarray(y, dtype=float).ravel()
    if x_arr.size != y_arr.size: raise DataLoadingError(f"x/y size mismatch ({x_arr.size} vs {y_arr.size}).")
    if x_arr.size == 0: raise DataLoadingError("No data points supplied.")
    data = pd.DataFrame({'shift': x_arr, 'intensity': y_arr})
    return data.sort_values('shift', kind='mergesort').reset_index(drop=True)
