"""
Unit Tests for display helpers, view models and HTML rendering
"""
import asyncio
from datetime import datetime, timedelta

import pytest

from careerguide.client.formatting import (
    Debouncer,
    activity_icon,
    format_date,
    format_event_time,
    gpa_color,
    gpa_percentage,
    status_class,
    time_ago,
)
from careerguide.client.render import render_institution_dashboard, render_student_dashboard
from careerguide.client.views import (
    ApplicationRowView,
    InstitutionDashboardState,
    NotificationView,
    ProfileView,
    RecommendationView,
    StudentDashboardState,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)


class TestGpa:

    @pytest.mark.parametrize('gpa,color', [
        (3.8, '#4CAF50'),
        (3.5, '#4CAF50'),
        (3.2, '#8BC34A'),
        (2.7, '#FFC107'),
        (2.0, '#FF9800'),
        (1.5, '#F44336'),
        (None, '#F44336'),
    ])
    def test_color_bands(self, gpa, color):
        assert gpa_color(gpa) == color

    def test_percentage(self):
        assert gpa_percentage(3.0) == 75.0
        assert gpa_percentage(5.0) == 100.0
        assert gpa_percentage(None) == 0.0


class TestDates:

    def test_format_date(self):
        assert format_date('2024-01-05T09:30:00') == 'Jan 5, 2024'
        assert format_date(None) == ''

    def test_event_time(self):
        assert format_event_time('2024-01-05T14:30:00') == '02:30 PM'

    @pytest.mark.parametrize('delta,expected', [
        (timedelta(seconds=20), 'just now'),
        (timedelta(minutes=1, seconds=5), 'a minute ago'),
        (timedelta(minutes=5), '5 minutes ago'),
        (timedelta(hours=1), 'an hour ago'),
        (timedelta(hours=3), '3 hours ago'),
        (timedelta(days=1, hours=2), 'yesterday'),
        (timedelta(days=4), '4 days ago'),
        (timedelta(days=31), 'a month ago'),
        (timedelta(days=100), '3 months ago'),
        (timedelta(days=365), 'a year ago'),
        (timedelta(days=800), '2 years ago'),
    ])
    def test_time_ago(self, delta, expected):
        assert time_ago((NOW - delta).isoformat(), now=NOW) == expected


class TestBadges:

    def test_status_class(self):
        assert status_class('UNDER_REVIEW') == 'status-under-review'
        assert status_class(None) == 'status-unknown'

    def test_activity_icon(self):
        assert activity_icon('application') == 'fa-file-alt'
        assert activity_icon('mystery') == 'fa-info-circle'


class TestDebouncer:

    @pytest.mark.asyncio
    async def test_only_last_call_runs(self):
        calls = []

        async def search(term):
            calls.append(term)

        debouncer = Debouncer(0.02, search)
        debouncer.call('a')
        debouncer.call('al')
        task = debouncer.call('ali')
        await task
        await asyncio.sleep(0.03)

        assert calls == ['ali']


class TestViews:

    def test_application_row(self):
        row = ApplicationRowView.from_api({
            'id': 'a1',
            'studentId': 's1',
            'status': 'PENDING',
            'appliedDate': '2024-06-14T12:00:00',
            'student': {'name': 'Ada', 'email': 'ada@x.test', 'gpa': '3.2', 'photo': None},
            'course': {'name': 'Physics', 'faculty': 'Science'},
        }, now=NOW)

        assert row.gpa == 3.2
        assert row.gpaColor == '#8BC34A'
        assert row.appliedAgo == 'yesterday'
        assert row.studentPhoto == 'img/default-avatar.png'
        assert row.statusClass == 'status-pending'

    def test_notification_view_prefers_notification_type(self):
        note = NotificationView.from_event({'type': 'notification', 'notificationType': 'message', 'title': 'Hi'})

        assert note.type == 'message'


class TestRender:

    def test_student_dashboard_escapes_api_text(self):
        state = StudentDashboardState(
            profile=ProfileView(name='<script>alert(1)</script>', email='ada@x.test'),
            courses=[RecommendationView(id='c1', title='Physics & Maths', matchScore=80)],
            errors=['Failed to load events'],
        )

        html = render_student_dashboard(state)

        assert '<script>alert(1)</script>' not in html
        assert '&lt;script&gt;alert(1)&lt;/script&gt;' in html
        assert 'Physics &amp; Maths' in html
        assert '80% Match' in html
        assert 'Failed to load events' in html
        assert 'No job recommendations yet' in html

    def test_institution_dashboard(self):
        state = InstitutionDashboardState(
            applications=[ApplicationRowView(id='a1', studentName='Ada "The Count"', status='ACCEPTED',
                                             statusClass='status-accepted', gpa=3.9, gpaPercent=97.5,
                                             gpaColor='#4CAF50')],
            hasMore=True,
        )

        html = render_institution_dashboard(state)

        assert 'Ada &#34;The Count&#34;' in html
        assert 'width: 97.5%' in html
        assert 'data-page="2"' in html
