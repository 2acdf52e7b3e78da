"""
Unit Tests for the HTTP client, dashboards and live channels
Uses httpx.MockTransport in place of the server
"""
import asyncio
import json

import httpx
import pytest
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException
from websockets.frames import Close
from websockets.http11 import Response

from careerguide.client.api import ApiError, CareerGuideClient
from careerguide.client.config import ClientConfig
from careerguide.client.dashboard import InstitutionDashboard, StudentDashboard
from careerguide.client.reconnect import ReconnectPolicy
from careerguide.client.streams import RETRYABLE, ChatConnection, NotificationStream, parse_sse


def ok(**payload) -> httpx.Response:
    return httpx.Response(200, json={'success': True, **payload})


def make_config(**overrides) -> ClientConfig:
    return ClientConfig(api_url='http://api.test', ws_url='ws://api.test/ws/chat', token='tok', **overrides)


STUDENT_RESPONSES = {
    '/api/student/profile': lambda: ok(profile={'name': 'Ada', 'email': 'ada@x.test', 'skills': ['python']}),
    '/api/student/applications/stats': lambda: ok(stats={'pending': 1, 'accepted': 2, 'rejected': 0, 'total': 3}),
    '/api/student/recommendations/courses': lambda: ok(courses=[
        {'id': 'c1', 'name': 'Physics', 'institution': 'Riverside', 'matchScore': 75},
    ]),
    '/api/student/recommendations/jobs': lambda: httpx.Response(500, json={
        'success': False, 'message': 'Internal server error', 'code': 'INTERNAL_ERROR',
    }),
    '/api/student/activity': lambda: ok(activities=[
        {'type': 'application', 'title': 'Application submitted', 'date': '2024-01-05T10:00:00'},
    ]),
    '/api/student/events': lambda: ok(events=[
        {'id': 'e1', 'title': 'Career Fair', 'date': '2030-05-01T14:00:00', 'canRSVP': True},
    ]),
}


def student_transport(seen=None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return STUDENT_RESPONSES[request.url.path]()
    return httpx.MockTransport(handler)


class TestApiClient:

    @pytest.mark.asyncio
    async def test_bearer_token_and_envelope(self):
        seen = []
        async with CareerGuideClient(make_config(), transport=student_transport(seen)) as api:
            body = await api.get('/student/profile')

        assert body['profile']['name'] == 'Ada'
        assert seen[0].headers['authorization'] == 'Bearer tok'

    @pytest.mark.asyncio
    async def test_error_envelope_raises(self):
        async with CareerGuideClient(make_config(), transport=student_transport()) as api:
            with pytest.raises(ApiError) as exc_info:
                await api.get('/student/recommendations/jobs')

        assert exc_info.value.status_code == 500
        assert exc_info.value.code == 'INTERNAL_ERROR'

    @pytest.mark.asyncio
    async def test_timeout_becomes_api_error(self):
        def handler(request):
            raise httpx.ReadTimeout('slow', request=request)

        async with CareerGuideClient(make_config(), transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(ApiError, match='timed out'):
                await api.get('/student/profile')

    @pytest.mark.asyncio
    async def test_fetch_config(self):
        def handler(request):
            assert request.url.path == '/config'
            return ok(config={'apiUrl': 'https://api.example.edu/', 'wsUrl': 'wss://api.example.edu/ws/chat',
                              'notificationRetryMs': 2000})

        config = await CareerGuideClient.fetch_config('https://api.example.edu',
                                                      transport=httpx.MockTransport(handler))

        assert config.api_url == 'https://api.example.edu'
        assert config.ws_url == 'wss://api.example.edu/ws/chat'
        assert config.reconnect_base_delay == 2.0

    @pytest.mark.asyncio
    async def test_login_stores_identity(self):
        def handler(request):
            assert request.url.path == '/login'
            assert json.loads(request.content) == {'idToken': 'fresh'}
            return ok(uid='u1', role='student', profile={})

        config = ClientConfig(api_url='http://api.test')
        async with CareerGuideClient(config, transport=httpx.MockTransport(handler)) as api:
            await api.login('fresh')

        assert (config.uid, config.role, config.token) == ('u1', 'student', 'fresh')

    @pytest.mark.asyncio
    async def test_profile_update_is_multipart(self):
        seen = []

        def handler(request):
            seen.append(request)
            return ok(profile={})

        async with CareerGuideClient(make_config(), transport=httpx.MockTransport(handler)) as api:
            await api.update_profile({'skills': ['python', 'sql'], 'bio': None},
                                     photo=('me.png', b'img', 'image/png'))

        body = seen[0].content
        assert seen[0].headers['content-type'].startswith('multipart/form-data')
        assert b'python,sql' in body
        assert b'name="bio"' not in body


class TestStudentDashboard:

    @pytest.mark.asyncio
    async def test_sections_load_independently(self):
        async with CareerGuideClient(make_config(), transport=student_transport()) as api:
            dashboard = StudentDashboard(api)
            state = await dashboard.load()

        assert state.profile.name == 'Ada'
        assert state.stats.accepted == 2
        assert state.courses[0].subtitle == 'Riverside'
        assert state.jobs == []
        assert state.errors == ['Failed to load job recommendations']
        assert state.events[0].day == 'May 1'
        assert state.activities[0].icon == 'fa-file-alt'

        html = dashboard.render()
        assert 'Failed to load job recommendations' in html
        assert 'Career Fair' in html

    @pytest.mark.asyncio
    async def test_requests_run_concurrently(self):
        in_flight = 0
        peak = 0

        async def handler(request):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return STUDENT_RESPONSES[request.url.path]()

        async with CareerGuideClient(make_config(), transport=httpx.MockTransport(handler)) as api:
            await StudentDashboard(api).load()

        assert peak > 1

    @pytest.mark.asyncio
    async def test_notifications_are_kept_newest_first(self):
        async with CareerGuideClient(make_config(), transport=student_transport()) as api:
            dashboard = StudentDashboard(api)
            await dashboard.handle_notification({'type': 'connected', 'userId': 'u1'})
            await dashboard.handle_notification({'type': 'application_status', 'title': 'First'})
            await dashboard.handle_notification({'type': 'message', 'title': 'Second'})
            await dashboard.load()

        assert [n.title for n in dashboard.state.notifications] == ['Second', 'First']


class TestInstitutionDashboard:

    @staticmethod
    def transport(seen):
        def handler(request):
            seen.append(request)
            path = request.url.path
            if path == '/api/institution/admissions/stats':
                return ok(stats={'total': 4, 'acceptanceRate': 50.0, 'enrollmentRate': 25.0})
            if path == '/api/institution/courses':
                return ok(courses=[
                    {'id': 'c1', 'name': 'Art', 'applicationCount': 1},
                    {'id': 'c2', 'name': 'Biology', 'applicationCount': 9},
                ])
            if path == '/api/institution/applications':
                page = int(request.url.params['page'])
                return ok(
                    applications=[{'id': f'a{page}', 'status': 'PENDING', 'student': {'name': f'S{page}'}}],
                    pagination={'hasNext': page < 2},
                )
            raise AssertionError(path)
        return httpx.MockTransport(handler)

    @pytest.mark.asyncio
    async def test_load_and_paginate(self):
        seen = []
        async with CareerGuideClient(make_config(), transport=self.transport(seen)) as api:
            dashboard = InstitutionDashboard(api, page_size=1, search_delay=0)
            state = await dashboard.load()
            assert [c.name for c in state.popularCourses] == ['Biology', 'Art']
            assert state.stats.acceptanceRate == 50.0
            assert state.hasMore is True

            await dashboard.load_more()
            assert [a.id for a in dashboard.state.applications] == ['a1', 'a2']
            assert dashboard.state.hasMore is False

    @pytest.mark.asyncio
    async def test_search_resets_to_first_page(self):
        seen = []
        async with CareerGuideClient(make_config(), transport=self.transport(seen)) as api:
            dashboard = InstitutionDashboard(api, search_delay=0.01)
            await dashboard.load()
            await dashboard.load_more()

            dashboard.search('al')
            await dashboard.search('ada')

        last = seen[-1]
        assert last.url.params['search'] == 'ada'
        assert last.url.params['page'] == '1'
        assert sum(1 for r in seen if r.url.params.get('search') == 'al') == 0


class TestLiveChannels:

    @pytest.mark.asyncio
    async def test_parse_sse_skips_comments_and_bad_frames(self):
        async def lines():
            for line in ['retry: 5000', '', ': keep-alive', '', 'data: {"type": "connected"}', '',
                         'data: not-json', '', 'data: {"title": "Hi"}', '']:
                yield line

        events = [event async for event in parse_sse(lines())]

        assert events == [{'type': 'connected'}, {'title': 'Hi'}]

    @pytest.mark.asyncio
    async def test_notification_stream_reconnects_after_drop(self):
        """Each dropped stream leads to exactly one reconnect after the fixed delay"""
        requests = []
        received = []
        cancel = asyncio.Event()

        def handler(request):
            requests.append(request)
            if len(requests) == 1:
                raise httpx.ConnectError('refused', request=request)
            body = 'retry: 5000\n\ndata: {"type": "connected"}\n\ndata: {"title": "Accepted"}\n\n'
            return httpx.Response(200, text=body, headers={'content-type': 'text/event-stream'})

        async def on_event(event):
            received.append(event)
            if event.get('title') == 'Accepted':
                cancel.set()

        config = make_config(role='student')
        stream = NotificationStream(config, on_event, policy=ReconnectPolicy.fixed(0.01), cancel=cancel,
                                    transport=httpx.MockTransport(handler))
        await asyncio.wait_for(stream.run(), timeout=2)

        assert len(requests) == 2
        assert stream.reconnector.delays == [0.01]
        assert requests[1].url.path == '/api/student/notifications/stream'
        assert requests[1].url.params['token'] == 'tok'
        assert received == [{'type': 'connected'}, {'title': 'Accepted'}]

    @pytest.mark.asyncio
    async def test_notification_stream_rejected_credentials(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={'success': False}))
        stream = NotificationStream(make_config(role='student'), on_event=None, transport=transport)

        with pytest.raises(ApiError):
            await stream.run()

    @pytest.mark.asyncio
    async def test_chat_connection_sends_and_receives(self):
        received = []
        sent = []
        cancel = asyncio.Event()

        class FakeWebSocket:
            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc_info):
                return False

            async def send(self, frame):
                sent.append(json.loads(frame))

            def __aiter__(self):
                return self._frames()

            async def _frames(self):
                yield json.dumps({'type': 'pong'})
                yield 'garbage'
                yield json.dumps({'type': 'chat', 'content': 'hi'})

        urls = []

        def connect(url, **kwargs):
            urls.append(url)
            return FakeWebSocket()

        chat = None

        async def on_message(message):
            received.append(message)
            if message['type'] == 'pong':
                await chat.send_chat('student-1', '  hello  ')
            if message['type'] == 'chat':
                cancel.set()

        chat = ChatConnection(make_config(), on_message, cancel=cancel, connect=connect)
        await asyncio.wait_for(chat.run(), timeout=2)

        assert urls == ['ws://api.test/ws/chat?token=tok']
        assert sent == [{'type': 'chat', 'recipientId': 'student-1', 'content': 'hello'}]
        assert [m['type'] for m in received] == ['pong', 'chat']


class ClosingWebSocket:
    """Socket that opens, then closes with the given frame"""

    def __init__(self, close):
        self.close = close

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        raise ConnectionClosed(self.close, None)
        yield


class TestChatRejection:

    @pytest.mark.asyncio
    async def test_websocket_errors_are_retryable(self):
        assert WebSocketException in RETRYABLE

    @pytest.mark.asyncio
    async def test_handshake_rejection_is_not_retried(self):
        attempts = []

        def connect(url, **kwargs):
            attempts.append(url)
            raise InvalidStatus(Response(403, 'Forbidden', Headers(), b''))

        chat = ChatConnection(make_config(), on_message=None, policy=ReconnectPolicy.fixed(0.01), connect=connect)

        with pytest.raises(ApiError) as exc_info:
            await asyncio.wait_for(chat.run(), timeout=2)

        assert exc_info.value.status_code == 403
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_server_error_handshake_is_retried(self):
        attempts = []
        cancel = asyncio.Event()

        def connect(url, **kwargs):
            attempts.append(url)
            if len(attempts) == 2:
                cancel.set()
            raise InvalidStatus(Response(502, 'Bad Gateway', Headers(), b''))

        chat = ChatConnection(make_config(), on_message=None, policy=ReconnectPolicy.fixed(0.01),
                              cancel=cancel, connect=connect)
        await asyncio.wait_for(chat.run(), timeout=2)

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_auth_close_code_is_not_retried(self):
        attempts = []

        def connect(url, **kwargs):
            attempts.append(url)
            return ClosingWebSocket(Close(4001, 'Invalid token'))

        chat = ChatConnection(make_config(), on_message=None, policy=ReconnectPolicy.fixed(0.01), connect=connect)

        with pytest.raises(ApiError) as exc_info:
            await asyncio.wait_for(chat.run(), timeout=2)

        assert exc_info.value.status_code == 4001
        assert len(attempts) == 1
        assert chat.status.value == 'disconnected'

    @pytest.mark.asyncio
    async def test_normal_close_reconnects_at_base_delay(self):
        attempts = []
        cancel = asyncio.Event()

        def connect(url, **kwargs):
            attempts.append(url)
            if len(attempts) == 3:
                cancel.set()
            return ClosingWebSocket(Close(1001, 'going away'))

        policy = ReconnectPolicy.exponential(base_delay=0.01, max_delay=1, multiplier=2, jitter=0)
        chat = ChatConnection(make_config(), on_message=None, policy=policy, cancel=cancel, connect=connect)
        await asyncio.wait_for(chat.run(), timeout=2)

        assert chat.reconnector.delays == [0.01, 0.01]
