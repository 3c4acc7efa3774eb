"""Core start-calling logic for StartForge.

This module contains the fundamental algorithms and data structures
for preparing and finishing start-codon classification:

- ORF indexing from start/stop predictions
- Start candidate scanning and feature extraction
- Annotated start positions and their roles
- Training, test and prediction feature tables
- Best start per ORF

Example:
    >>> from startforge.core import FeatureExtractor, read_prediction_file
    >>> orfs = read_prediction_file("genome.stops.tbl")
"""

from startforge.core.dataset import (
    TrainingSetBuilder,
    write_predict_table,
    write_test_table,
)
from startforge.core.finish import (
    BestStartResolver,
    CompactWriter,
    FullEchoWriter,
    GoodStart,
    StartWriter,
    make_writer,
)
from startforge.core.orfs import (
    FrameOrfIndex,
    OrfHit,
    StopCodon,
    StopCodonIndex,
    read_prediction_file,
)
from startforge.core.roles import StartRoleIndex, build_start_role_indexes
from startforge.core.starts import (
    FEATURE_NAMES,
    FeatureExtractor,
    StartCandidate,
    feature_header,
)

__all__: list[str] = [
    # ORF indexing
    "FrameOrfIndex",
    "OrfHit",
    "StopCodon",
    "StopCodonIndex",
    "read_prediction_file",
    # Feature extraction
    "FEATURE_NAMES",
    "FeatureExtractor",
    "StartCandidate",
    "feature_header",
    # Roles
    "StartRoleIndex",
    "build_start_role_indexes",
    # Feature tables
    "TrainingSetBuilder",
    "write_predict_table",
    "write_test_table",
    # Final calls
    "BestStartResolver",
    "CompactWriter",
    "FullEchoWriter",
    "GoodStart",
    "StartWriter",
    "make_writer",
]
