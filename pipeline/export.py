"""
Export of combined schedules and their audit records.

The schedule table goes to CSV. The audit record, a YAML file written next
to it, holds every stratum request including its seed, so the exact
schedule can be regenerated later.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from randomisation.blocks import BlockSizePolicy, RandomisationRequest
from randomisation.exceptions import InvalidParameter
from randomisation.strata import CombinedSchedule, combine


def _request_record(request: RandomisationRequest) -> Dict[str, Any]:
    return {
        'stratum': request.stratum,
        'n': int(request.n),
        'levels': list(request.levels),
        'block_policy': {
            'kind': request.block_policy.kind,
            'sizes': [int(s) for s in request.block_policy.sizes]
        },
        'seed': int(request.seed),
        'prefix': request.prefix
    }


def audit_record(schedule: CombinedSchedule) -> Dict[str, Any]:
    """Describe how a combined schedule was generated."""
    return {
        'generated_utc': datetime.now(timezone.utc).isoformat(timespec='seconds'),
        'numpy_version': np.__version__,
        'n_rows': len(schedule),
        'id_width': int(schedule.id_width),
        'strata': [_request_record(r) for r in schedule.requests]
    }


def export_schedule(schedule: CombinedSchedule,
                    output_dir: str,
                    stem: str = 'schedule',
                    timestamp: Optional[str] = None) -> Dict[str, str]:
    """
    Write the schedule table and its audit record.

    Args:
        schedule: Combined schedule to export
        output_dir: Directory to write into (created if doesn't exist)
        stem: Base file name
        timestamp: Optional suffix; files are named '<stem>_<timestamp>.*'

    Returns:
        Dictionary with 'csv' and 'audit' file paths
    """
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    name = f"{stem}_{timestamp}" if timestamp else stem
    csv_path = os.path.join(output_dir, f"{name}.csv")
    audit_path = os.path.join(output_dir, f"{name}_audit.yaml")

    schedule.table.to_csv(csv_path, index=False)
    with open(audit_path, 'w') as f:
        yaml.safe_dump(audit_record(schedule), f, default_flow_style=False, sort_keys=False)

    return {'csv': csv_path, 'audit': audit_path}


def load_audit_record(path: str) -> Dict[str, Any]:
    """Read an audit record written by export_schedule()."""
    with open(path, 'r') as f:
        record = yaml.safe_load(f)
    if not isinstance(record, dict) or 'strata' not in record:
        raise InvalidParameter(f"{path} is not a schedule audit record")
    return record


def requests_from_audit(record: Dict[str, Any]) -> List[RandomisationRequest]:
    """Rebuild the stratum requests stored in an audit record."""
    requests = []
    for item in record['strata']:
        policy = item['block_policy']
        requests.append(RandomisationRequest(
            n=item['n'],
            levels=tuple(item['levels']),
            block_policy=BlockSizePolicy(policy['kind'], tuple(policy['sizes'])),
            seed=item['seed'],
            stratum=item['stratum'],
            prefix=item.get('prefix', '')
        ))
    return requests


def regenerate_from_audit(path: str) -> CombinedSchedule:
    """
    Regenerate a schedule from its audit record.

    With the same numpy release the result is identical to the exported
    schedule.
    """
    record = load_audit_record(path)
    return combine(requests_from_audit(record), id_width=record.get('id_width'))
