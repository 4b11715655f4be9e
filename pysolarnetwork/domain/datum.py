from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from pysolarnetwork.util.dates import parse_date


class Datum:
    """
    A datum sample for a node and source, e.g.

        {"created": "2024-01-10 15:30:00.000Z", "nodeId": 123, "sourceId": "/power/1", "watts": 1234}

    Sample properties other than created/nodeId/sourceId are available as attributes
    and via props.
    """

    def __init__(self, info: Dict[str, Any]):
        self.props = {k: v for k, v in info.items() if k not in ('created', 'nodeId', 'sourceId')}
        self.date: Optional[datetime] = parse_date(info.get('created'))
        self.created: Optional[str] = info.get('created')
        self.node_id = info.get('nodeId')
        self.source_id = info.get('sourceId')

    def __getattr__(self, name: str) -> Any:
        props = self.__dict__.get('props')
        if props is not None and name in props:
            return props[name]
        raise AttributeError(name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(node_id={self.node_id!r}, source_id={self.source_id!r}, created={self.created!r})"


class ControlDatum(Datum):
    """A datum for a control, with the control's last reported value in val."""

    @property
    def val(self) -> Any:
        return self.props.get('val')


class DatumFilter:
    """Criteria for datum queries; only node and source criteria are supported."""

    def __init__(self, node_ids: Union[int, List[int], None] = None,
                 source_ids: Union[str, List[str], None] = None):
        self.node_ids = self._as_list(node_ids)
        self.source_ids = self._as_list(source_ids)

    @staticmethod
    def _as_list(val) -> List[Any]:
        if val is None:
            return []
        if isinstance(val, (list, tuple)):
            return list(val)
        return [val]

    @property
    def node_id(self) -> Optional[int]:
        return self.node_ids[0] if self.node_ids else None

    @property
    def source_id(self) -> Optional[str]:
        return self.source_ids[0] if self.source_ids else None

    def to_uri_encoding(self) -> str:
        params = []
        for name, vals in (('nodeId', self.node_ids), ('sourceId', self.source_ids)):
            if len(vals) == 1:
                params.append(f"{name}={quote(str(vals[0]), safe='')}")
            elif vals:
                params.append(f"{name}s=" + quote(','.join(str(v) for v in vals), safe=','))
        return '&'.join(params)
