"""
Task list - open events due soon, by priority
"""
import streamlit as st
import pandas as pd
from typing import List

from models.event import CalendarTask, CalendarTaskData
from utils.helpers import format_date

PRIORITY_EMOJI = {
    'urgent': '🔴',
    'high': '🟠',
    'medium': '🟡',
    'low': '🟢',
}
PRIORITY_ORDER = {'urgent': 0, 'high': 1, 'medium': 2, 'low': 3}


def _tasks_frame(tasks: List[CalendarTask]) -> pd.DataFrame:
    df = pd.DataFrame([
        {
            'Priority': f"{PRIORITY_EMOJI.get(t.priority, '')} {t.priority.title()}",
            'Due': format_date(t.due_date),
            'Task': t.title,
            'Type': t.type,
            'Property': t.property_name or '',
            'Unit': t.unit_name or '',
            'Days Overdue': t.days_overdue,
            '_order': PRIORITY_ORDER.get(t.priority, 4),
        }
        for t in tasks
    ])
    return df.sort_values(['_order', 'Days Overdue'], ascending=[True, False]).drop(columns=['_order'])


def render_tasks(task_data: CalendarTaskData, today_tasks: List[CalendarTask]):
    """
    Render today's tasks and the overdue/upcoming split
    """
    st.header("✅ Tasks")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Open Tasks", task_data.total)
    with col2:
        st.metric("Overdue", len(task_data.overdue))
    with col3:
        st.metric("Due Today or Earlier", len(today_tasks))

    if task_data.total == 0:
        st.success("✅ Nothing due. All caught up!")
        return

    if task_data.overdue:
        st.subheader("⚠️ Overdue")
        st.dataframe(_tasks_frame(task_data.overdue), hide_index=True, use_container_width=True)

    if task_data.upcoming:
        st.subheader("⏳ Upcoming")
        st.dataframe(
            _tasks_frame(task_data.upcoming).drop(columns=['Days Overdue']),
            hide_index=True,
            use_container_width=True
        )
