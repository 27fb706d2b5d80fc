"""
Candidate regression models selectable by name from the command line.
"""

from typing import Any, Dict, List, Optional
from sklearn.ensemble import GradientBoostingRegressor, RandomForestRegressor
from sklearn.linear_model import LinearRegression, Ridge
from sklearn.neighbors import KNeighborsRegressor
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import PolynomialFeatures, SplineTransformer, StandardScaler


MODEL_TYPES = (
    "linear",
    "interaction",
    "splines",
    "ridge",
    "knn",
    "random_forest",
    "gradient_boosting",
)


def build_estimator(model_type: str, random_state: Optional[int] = None) -> Any:
    """
    Create an unfitted estimator by name.

    Args:
        model_type: One of ``MODEL_TYPES``
        random_state: Seed for stochastic models

    Returns:
        scikit-learn estimator
    """
    if model_type == "linear":
        return LinearRegression()
    elif model_type == "interaction":
        return make_pipeline(
            PolynomialFeatures(degree=2, interaction_only=True, include_bias=False),
            LinearRegression(),
        )
    elif model_type == "splines":
        return make_pipeline(SplineTransformer(n_knots=5, degree=3), LinearRegression())
    elif model_type == "ridge":
        return make_pipeline(StandardScaler(), Ridge(alpha=1.0))
    elif model_type == "knn":
        return make_pipeline(StandardScaler(), KNeighborsRegressor(n_neighbors=5))
    elif model_type == "random_forest":
        return RandomForestRegressor(n_estimators=200, random_state=random_state, n_jobs=-1)
    elif model_type == "gradient_boosting":
        return GradientBoostingRegressor(random_state=random_state)
    else:
        raise ValueError(f"Unknown model type: {model_type}. Available: {list(MODEL_TYPES)}")


def build_estimators(model_types: List[str], random_state: Optional[int] = None) -> Dict[str, Any]:
    """Create one estimator per requested model type, keyed by name."""
    return {name: build_estimator(name, random_state=random_state) for name in model_types}
