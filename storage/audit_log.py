"""
Audit trail logging
"""
from datetime import datetime
from typing import Optional
import json
from pathlib import Path

from config import settings


class AuditLog:
    """
    Maintains an audit trail of calendar actions and refreshes
    """

    def __init__(self, log_path: str = None):
        self.log_path = Path(log_path or settings.AUDIT_LOG_PATH)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_action(
        self,
        action: str,
        user: str,
        details: dict,
        timestamp: Optional[datetime] = None
    ):
        """Log an action to the audit trail"""
        if timestamp is None:
            timestamp = datetime.now()

        log_entry = {
            'timestamp': timestamp.isoformat(),
            'action': action,
            'user': user,
            'details': details
        }

        # Append to log file
        with open(self.log_path, 'a') as f:
            f.write(json.dumps(log_entry, default=str) + '\n')

    def log_event_action(
        self,
        event_id: str,
        action_id: str,
        user: str,
        accepted: bool,
        message: str
    ):
        """Log an event action dispatch, accepted or rejected"""
        self.log_action(
            action='event_action',
            user=user,
            details={
                'event_id': event_id,
                'action_id': action_id,
                'accepted': accepted,
                'message': message
            }
        )

    def log_data_refresh(
        self,
        source: str,
        user: str,
        events_built: int,
        records_skipped: int
    ):
        """Log a fetch-normalize cycle"""
        self.log_action(
            action='data_refresh',
            user=user,
            details={
                'source': source,
                'events_built': events_built,
                'records_skipped': records_skipped
            }
        )

    def log_custom_event_change(
        self,
        change: str,
        event_id: str,
        user: str,
        title: Optional[str] = None
    ):
        """Log a custom event create/update/delete"""
        self.log_action(
            action=f'custom_event_{change}',
            user=user,
            details={
                'event_id': event_id,
                'title': title
            }
        )

    def get_recent_logs(self, limit: int = 100) -> list:
        """Get recent log entries"""
        if not self.log_path.exists():
            return []

        logs = []
        with open(self.log_path, 'r') as f:
            for line in f:
                if line.strip():
                    logs.append(json.loads(line))

        # Return most recent entries
        return logs[-limit:]
