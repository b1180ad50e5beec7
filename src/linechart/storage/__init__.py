"""图片产物存储。"""

from linechart.storage.artifacts import Artifact, ArtifactStore, parse_identifier

__all__ = ["Artifact", "ArtifactStore", "parse_identifier"]
