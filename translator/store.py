"""
Data product config and connection template store.
Documents are loaded once into an immutable snapshot that is swapped in
atomically; readers always see a complete snapshot.
"""
import copy
import json
import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataProductConfig:
    """Data product config: template reference plus static/dynamic parameters."""
    product_code: str
    template: Optional[str] = None
    static: Mapping[str, Any] = field(default_factory=dict)
    dynamic: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, product_code: str, doc: Dict[str, Any]) -> "DataProductConfig":
        return cls(
            product_code=doc.get("productCode", product_code),
            template=doc.get("template"),
            static=MappingProxyType(dict(doc.get("static") or {})),
            dynamic=MappingProxyType(dict(doc.get("dynamic") or {})),
        )


@dataclass(frozen=True)
class _Snapshot:
    configs: Mapping[str, DataProductConfig]
    templates: Mapping[str, Dict[str, Any]]


class ConfigStore:
    """Read-only lookups over the current snapshot of configs and templates."""

    def __init__(self, configs: Optional[Dict[str, Dict[str, Any]]] = None,
                 templates: Optional[Dict[str, Dict[str, Any]]] = None):
        self._snapshot: Optional[_Snapshot] = None
        if configs is not None or templates is not None:
            self.swap(configs or {}, templates or {})

    @property
    def ready(self) -> bool:
        return self._snapshot is not None

    def swap(self, configs: Dict[str, Dict[str, Any]], templates: Dict[str, Dict[str, Any]]) -> None:
        """Replace the whole snapshot in one assignment."""
        snapshot = _Snapshot(
            configs=MappingProxyType({
                key: DataProductConfig.from_dict(key, doc) for key, doc in configs.items()
            }),
            templates=MappingProxyType({key: copy.deepcopy(doc) for key, doc in templates.items()}),
        )
        self._snapshot = snapshot
        logger.info(f"✅ Loaded {len(snapshot.configs)} configs and {len(snapshot.templates)} templates")

    def get_config(self, product_code: str) -> Optional[DataProductConfig]:
        if self._snapshot is None:
            return None
        return self._snapshot.configs.get(product_code)

    def get_template(self, name: str) -> Optional[Dict[str, Any]]:
        """Return a private deep copy of the named template."""
        if self._snapshot is None:
            return None
        template = self._snapshot.templates.get(name)
        return copy.deepcopy(template) if template is not None else None

    def iter_configs(self) -> Iterator[Tuple[str, DataProductConfig]]:
        if self._snapshot is None:
            return iter(())
        return iter(self._snapshot.configs.items())

    def load(self, config_dir: str, template_dir: str) -> None:
        """Load *.json configs and templates; the file stem is the key."""
        self.swap(read_json_documents(config_dir), read_json_documents(template_dir))


def read_json_documents(directory: str) -> Dict[str, Dict[str, Any]]:
    documents: Dict[str, Dict[str, Any]] = {}
    if not os.path.isdir(directory):
        logger.warning(f"⚠️ Directory {directory} does not exist, nothing to load")
        return documents

    for filename in sorted(os.listdir(directory)):
        if not filename.endswith(".json"):
            continue
        path = os.path.join(directory, filename)
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Failed to load {path}: {e}")
            continue
        if not isinstance(doc, dict):
            logger.error(f"❌ {path} does not contain a JSON object, skipping")
            continue
        documents[filename[:-len(".json")]] = doc
        logger.info(f"📄 Loaded {path}")
    return documents
