import os
import pandas as pd
import logging
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

# The parameter workbook lives in <project root>/data unless MPG_LCA_PARAMETERS points elsewhere.
# This file is <project root>/src/mpg_lca/config.py, so the project root is two levels up.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "data", "project_parameters.xlsx")

TEMPLATE_COLUMNS = ["Section", "Key", "Value", "Unit", "Description"]


def resolve_config_path() -> str:
    return os.environ.get("MPG_LCA_PARAMETERS", DEFAULT_CONFIG_PATH)


def load_excel_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load parameter overrides from an Excel file.
    Expected columns: Key, Value (Unit, Section, Description are informational).
    Returns a dictionary of Key -> Value. A missing file yields an empty dict.
    """
    path = path or resolve_config_path()
    config: Dict[str, Any] = {}
    if not os.path.exists(path):
        logger.debug(f"Parameter workbook not found at {path}. Using built-in defaults.")
        return config

    try:
        df = pd.read_excel(path)
    except Exception as e:
        logger.error(f"Failed to load parameters from {path}: {e}")
        return config

    if "Key" not in df.columns or "Value" not in df.columns:
        logger.warning(f"Excel file {path} missing 'Key' or 'Value' columns.")
        return config

    for _, row in df.iterrows():
        if pd.isna(row["Key"]) or pd.isna(row["Value"]):
            continue
        key = str(row["Key"]).strip()
        config[key] = row["Value"]
    logger.info(f"Loaded {len(config)} parameters from {path}")
    return config


def export_parameter_template(path: str, params: Optional[List[Dict[str, Any]]] = None) -> str:
    """
    Write the parameter workbook (Section, Key, Value, Unit, Description) so the
    defaults can be reviewed and edited, then reloaded through load_excel_config.
    """
    if params is None:
        from .constants import parameter_rows
        params = parameter_rows()

    df = pd.DataFrame(params)
    for col in TEMPLATE_COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df[TEMPLATE_COLUMNS].sort_values(["Section", "Key"], kind="stable")

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    df.to_excel(path, index=False)
    logger.info(f"Wrote {len(df)} parameters to {path}")
    return path
