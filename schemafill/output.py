"""
Output utilities for saving dry-run rows to CSV or JSON files.
"""

import logging
import os
import pandas as pd
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('csv', 'json')


def save_dataframe(
    df: pd.DataFrame,
    file_path: str,
    format: Optional[str] = None
) -> str:
    """
    Save the rows generated for one table.

    Args:
        df: DataFrame to save
        file_path: Path where the file should be saved
        format: Optional format override ('csv' or 'json')

    Returns:
        Path to the saved file

    Raises:
        ValueError: If the DataFrame has no columns
        ValueError: If the specified format is not supported ('csv' or 'json')
    """
    if len(df.columns) == 0:
        raise ValueError("Nothing to save: the DataFrame has no columns.")

    if format and format.lower() not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported format: {format}. Supported formats are 'csv' and 'json'.")

    if format and not file_path.endswith(f'.{format.lower()}'):
        file_path = f"{file_path}.{format.lower()}"

    output_dir = os.path.dirname(file_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    if file_path.endswith('.json'):
        df.to_json(file_path, orient='records', date_format='iso', default_handler=str)
    else:
        if not file_path.endswith('.csv'):
            file_path = f"{file_path}.csv"
        df.to_csv(file_path, index=False)

    logger.info(f"Wrote {len(df)} rows to {file_path}")
    return file_path


def save_dataframes(
    data_dict: Dict[str, pd.DataFrame],
    output_dir: str,
    format: str = 'csv',
    filenames: Optional[Dict[str, str]] = None
) -> List[str]:
    """
    Save the rows of several tables, one file per table.

    Args:
        data_dict: Dictionary mapping table names to DataFrames
        output_dir: Directory where files should be saved
        format: File format to use ('csv' or 'json')
        filenames: Optional dictionary mapping table names to custom filenames
                   (without extension)

    Returns:
        List of paths to saved files
    """
    os.makedirs(output_dir, exist_ok=True)
    saved_paths = []

    for name, df in data_dict.items():
        base_filename = filenames.get(name, name.lower()) if filenames else name.lower()
        file_path = os.path.join(output_dir, base_filename)
        saved_paths.append(save_dataframe(df, file_path, format=format))

    return saved_paths
