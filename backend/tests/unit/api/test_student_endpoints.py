"""
Unit Tests for the Student API
"""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from careerguide.services import collections


class TestProfile:

    @pytest.mark.asyncio
    async def test_get_profile(self, client: AsyncClient, student):
        response = await client.get('/api/student/profile', headers=student.headers)

        profile = response.json()['profile']
        assert profile['uid'] == student.uid
        assert profile['email'] == student.email
        assert profile['gpa'] == 3.6

    @pytest.mark.asyncio
    async def test_update_profile_fields(self, client: AsyncClient, store, student):
        response = await client.put('/api/student/profile', data={
            'bio': '  Aspiring data engineer ',
            'skills': 'python, sql , ,spark',
        }, headers=student.headers)

        assert response.status_code == 200
        profile = (await store.get(collections.USERS, student.uid))['profileData']
        assert profile['bio'] == 'Aspiring data engineer'
        assert profile['skills'] == ['python', 'sql', 'spark']
        assert profile['gpa'] == 3.6  # untouched fields survive

    @pytest.mark.asyncio
    async def test_update_profile_with_photo(self, client: AsyncClient, store, storage, student):
        response = await client.put(
            '/api/student/profile',
            data={'name': 'Ada'},
            files={'photo': ('me.png', b'\x89PNG fake', 'image/png')},
            headers=student.headers,
        )

        assert response.status_code == 200
        (path,) = storage.uploads
        assert path.startswith(f'profile-photos/{student.uid}/') and path.endswith('.png')
        assert response.json()['profile']['photo'] == f'https://storage.test/{path}'

    @pytest.mark.asyncio
    async def test_update_profile_rejects_file_type(self, client: AsyncClient, store, storage, student):
        response = await client.put(
            '/api/student/profile',
            files={'photo': ('script.exe', b'MZ', 'application/octet-stream')},
            headers=student.headers,
        )

        assert response.status_code == 400
        assert response.json()['code'] == 'INVALID_FILE_TYPE'
        assert storage.uploads == {}


class TestApplications:

    @pytest.mark.asyncio
    async def test_apply(self, client: AsyncClient, store, student, course, institution):
        response = await client.post('/api/student/applications', json={'courseId': course['id']},
                                     headers=student.headers)

        assert response.status_code == 201
        application = response.json()['application']
        assert application['status'] == 'PENDING'
        assert application['institutionId'] == institution.uid
        notes = store.all(collections.NOTIFICATIONS)
        assert notes[0]['userId'] == institution.uid
        assert notes[0]['type'] == 'new_application'

    @pytest.mark.asyncio
    async def test_apply_twice_conflicts(self, client: AsyncClient, student, course):
        await client.post('/api/student/applications', json={'courseId': course['id']}, headers=student.headers)
        response = await client.post('/api/student/applications', json={'courseId': course['id']},
                                     headers=student.headers)

        assert response.status_code == 409
        assert response.json()['code'] == 'DUPLICATE_APPLICATION'

    @pytest.mark.asyncio
    async def test_apply_to_inactive_course(self, client: AsyncClient, store, student, course):
        await store.update(collections.COURSES, course['id'], {'status': 'INACTIVE'})

        response = await client.post('/api/student/applications', json={'courseId': course['id']},
                                     headers=student.headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'COURSE_INACTIVE'

    @pytest.mark.asyncio
    async def test_apply_to_missing_course(self, client: AsyncClient, student):
        response = await client.post('/api/student/applications', json={'courseId': 'nope'},
                                     headers=student.headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_stats_count_under_review_as_pending(self, client: AsyncClient, store, student, application):
        store.seed(collections.APPLICATIONS, 'application-2', {
            'studentId': student.uid, 'courseId': 'other', 'status': 'UNDER_REVIEW',
        })
        store.seed(collections.APPLICATIONS, 'application-3', {
            'studentId': student.uid, 'courseId': 'third', 'status': 'REJECTED',
        })

        response = await client.get('/api/student/applications/stats', headers=student.headers)

        assert response.json()['stats'] == {'pending': 2, 'accepted': 0, 'rejected': 1, 'total': 3}

    @pytest.mark.asyncio
    async def test_list_my_applications(self, client: AsyncClient, student, application):
        response = await client.get('/api/student/applications', headers=student.headers)

        (row,) = response.json()['applications']
        assert row['course']['code'] == 'CS101'


class TestRecommendations:

    @pytest.mark.asyncio
    async def test_course_recommendations(self, client: AsyncClient, store, student, course, institution):
        store.seed(collections.COURSES, 'course-art', {
            'institutionId': institution.uid, 'name': 'Fine Art', 'requirements': ['painting'],
            'status': 'ACTIVE',
        })

        response = await client.get('/api/student/recommendations/courses', headers=student.headers)

        courses = response.json()['courses']
        assert [c['id'] for c in courses] == ['course-cs', 'course-art']
        assert courses[0]['matchScore'] > courses[1]['matchScore'] == 0
        assert courses[0]['institution'] == 'Riverside University'

    @pytest.mark.asyncio
    async def test_applied_courses_are_not_recommended(self, client: AsyncClient, student, application):
        response = await client.get('/api/student/recommendations/courses', headers=student.headers)

        assert response.json()['courses'] == []

    @pytest.mark.asyncio
    async def test_job_recommendations_only_open(self, client: AsyncClient, store, student):
        store.seed(collections.JOBS, 'job-open', {'title': 'Data Analyst', 'skills': ['python', 'sql'],
                                                  'status': 'OPEN'})
        store.seed(collections.JOBS, 'job-closed', {'title': 'Python Dev', 'skills': ['python'],
                                                    'status': 'CLOSED'})

        response = await client.get('/api/student/recommendations/jobs', headers=student.headers)

        jobs = response.json()['jobs']
        assert [j['id'] for j in jobs] == ['job-open']
        assert jobs[0]['matchScore'] == 67


class TestActivityAndEvents:

    @pytest.mark.asyncio
    async def test_activity_feed(self, client: AsyncClient, student, course):
        await client.post('/api/student/applications', json={'courseId': course['id']}, headers=student.headers)

        response = await client.get('/api/student/activity', headers=student.headers)

        (activity,) = response.json()['activities']
        assert activity['type'] == 'application'
        assert activity['description'] == 'Computer Science'

    @pytest.mark.asyncio
    async def test_events_and_rsvp(self, client: AsyncClient, store, student):
        soon = (datetime.utcnow() + timedelta(days=3)).isoformat()
        past = (datetime.utcnow() - timedelta(days=3)).isoformat()
        store.seed(collections.EVENTS, 'event-fair', {'title': 'Career Fair', 'date': soon})
        store.seed(collections.EVENTS, 'event-old', {'title': 'Old Talk', 'date': past})

        before = await client.get('/api/student/events', headers=student.headers)
        first = await client.post('/api/student/events/event-fair/rsvp', headers=student.headers)
        again = await client.post('/api/student/events/event-fair/rsvp', headers=student.headers)
        after = await client.get('/api/student/events', headers=student.headers)

        (event,) = before.json()['events']
        assert event['id'] == 'event-fair' and event['canRSVP'] is True
        assert first.json()['message'] == 'RSVP confirmed'
        assert again.json()['message'] == 'Already registered for this event'
        assert len(store.all(collections.RSVPS)) == 1
        assert after.json()['events'][0]['hasRSVP'] is True

    @pytest.mark.asyncio
    async def test_rsvp_closed(self, client: AsyncClient, store, student):
        store.seed(collections.EVENTS, 'event-full', {
            'title': 'Workshop', 'date': (datetime.utcnow() + timedelta(days=1)).isoformat(), 'rsvpOpen': False,
        })

        response = await client.post('/api/student/events/event-full/rsvp', headers=student.headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'RSVP_CLOSED'
