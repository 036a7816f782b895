"""
RANSAC parameter configuration.

Parameters can be given directly, as a mapping, or loaded from a YAML file.
The YAML file may either be a flat mapping of parameters or use the ROS 2
parameter file layout:

    seq_ransac_node:
      ros__parameters:
        distance_threshold: 0.01
        max_iterations: 1000
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidParameterError
from .ransac_core import MultiPlaneRANSAC, RANSACPlane

ROS_PARAMETERS_KEY = 'ros__parameters'


class RANSACConfig(BaseModel):
    model_config = ConfigDict(extra='forbid', frozen=True)

    distance_threshold: float = Field(0.01, gt=0, allow_inf_nan=False,
                                      description="RANSAC inlier distance (meters)")
    max_iterations: int = Field(1000, gt=0, description="RANSAC iterations per plane")
    plane_count: int = Field(3, gt=0, description="Number of planes to extract")
    min_inliers_ratio: float = Field(0.0, ge=0.0, le=1.0,
                                     description="Minimum inlier ratio of a valid plane")
    random_seed: Optional[int] = Field(None, description="Seed of the sampling generator")
    n_workers: int = Field(1, ge=1, description="Threads scoring RANSAC trials")
    max_points: Optional[int] = Field(None, gt=0,
                                      description="Subsample clouds larger than this")

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> 'RANSACConfig':
        try:
            return cls(**params)
        except ValidationError as exc:
            raise InvalidParameterError(str(exc)) from exc

    def build_fitter(self) -> RANSACPlane:
        return RANSACPlane(
            max_iterations=self.max_iterations,
            distance_threshold=self.distance_threshold,
            min_inliers_ratio=self.min_inliers_ratio,
            random_seed=self.random_seed,
            n_workers=self.n_workers
        )

    def build_extractor(self) -> MultiPlaneRANSAC:
        return MultiPlaneRANSAC(
            plane_count=self.plane_count,
            max_iterations=self.max_iterations,
            distance_threshold=self.distance_threshold,
            min_inliers_ratio=self.min_inliers_ratio,
            random_seed=self.random_seed,
            n_workers=self.n_workers
        )


def _select_parameters(data: Mapping[str, Any], node_name: Optional[str]) -> Mapping[str, Any]:
    if node_name is not None:
        if node_name not in data:
            raise InvalidParameterError(f'No parameters for node {node_name!r}')
        data = data[node_name]
    elif len(data) == 1:
        # Single node section, e.g. "seq_ransac_node:" or "/**:"
        (section,) = data.values()
        if isinstance(section, Mapping) and ROS_PARAMETERS_KEY in section:
            data = section

    if ROS_PARAMETERS_KEY in data:
        data = data[ROS_PARAMETERS_KEY]
    return data


def load_config(path: Union[str, Path], node_name: Optional[str] = None) -> RANSACConfig:
    """
    Load RANSAC parameters from a YAML file.

    Args:
        path: YAML file path
        node_name: Section to read in a ROS 2 parameter file with several nodes

    Returns:
        Validated RANSACConfig
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return RANSACConfig()
    if not isinstance(data, Mapping):
        raise InvalidParameterError(f'{path} does not contain a parameter mapping')

    params = _select_parameters(data, node_name)
    if not isinstance(params, Mapping):
        raise InvalidParameterError(f'{path} does not contain a parameter mapping')
    return RANSACConfig.from_mapping(params)
