"""
Unit Tests for the applicant directory, broadcasts and chat history
"""
import pytest
from httpx import AsyncClient

from careerguide.services import collections
from careerguide.services.chat import save_message


class TestStudentDirectory:

    @pytest.mark.asyncio
    async def test_lists_only_applicants(self, client: AsyncClient, institution, application, student, new_account):
        new_account('student')  # never applied

        response = await client.get('/api/institution/students', headers=institution.headers)

        students = response.json()['students']
        assert [s['id'] for s in students] == [student.uid]
        assert students[0]['courseIds'] == ['course-cs']
        assert students[0]['isOnline'] is False

    @pytest.mark.asyncio
    async def test_year_filter(self, client: AsyncClient, institution, application):
        second = await client.get('/api/institution/students', params={'year': '2'}, headers=institution.headers)
        fourth = await client.get('/api/institution/students', params={'year': '4'}, headers=institution.headers)

        assert len(second.json()['students']) == 1
        assert fourth.json()['students'] == []

    @pytest.mark.asyncio
    async def test_student_detail_includes_history(self, client: AsyncClient, store, institution, application, student):
        await save_message(store, institution.uid, student.uid, 'Hello there')

        response = await client.get(f'/api/institution/students/{student.uid}', headers=institution.headers)

        detail = response.json()['student']
        assert detail['skills'] == ['python', 'data analysis']
        assert [m['content'] for m in detail['communications']] == ['Hello there']

    @pytest.mark.asyncio
    async def test_non_applicant_detail_is_404(self, client: AsyncClient, institution, new_account):
        stranger = new_account('student')

        response = await client.get(f'/api/institution/students/{stranger.uid}', headers=institution.headers)

        assert response.status_code == 404


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_broadcast_to_all(self, client: AsyncClient, store, institution, application, student):
        response = await client.post('/api/institution/broadcast', json={
            'subject': 'Orientation', 'content': 'Monday 9am, main hall',
        }, headers=institution.headers)

        assert response.json()['recipientCount'] == 1
        notes = store.all(collections.NOTIFICATIONS)
        assert notes[0]['userId'] == student.uid
        assert notes[0]['title'] == 'Orientation'

    @pytest.mark.asyncio
    async def test_custom_recipients_limited_to_applicants(self, client: AsyncClient, store, institution,
                                                            application, new_account):
        stranger = new_account('student')

        response = await client.post('/api/institution/broadcast', json={
            'subject': 'Hi', 'content': 'Hello', 'recipientType': 'custom', 'recipients': [stranger.uid],
        }, headers=institution.headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'NO_RECIPIENTS'
        assert store.all(collections.NOTIFICATIONS) == []


class TestChatHistory:

    @pytest.mark.asyncio
    async def test_history_is_oldest_first(self, client: AsyncClient, store, institution, student):
        store.seed(collections.MESSAGES, 'm2', {
            'conversationId': '_'.join(sorted([institution.uid, student.uid])),
            'senderId': student.uid, 'recipientId': institution.uid,
            'content': 'second', 'timestamp': '2024-01-01T10:05:00',
        })
        store.seed(collections.MESSAGES, 'm1', {
            'conversationId': '_'.join(sorted([institution.uid, student.uid])),
            'senderId': institution.uid, 'recipientId': student.uid,
            'content': 'first', 'timestamp': '2024-01-01T10:00:00',
        })

        response = await client.get(f'/api/institution/chat/{student.uid}/history', headers=institution.headers)

        assert [m['content'] for m in response.json()['messages']] == ['first', 'second']
