"""
Unit Tests for Institution Faculties and Courses
"""
import pytest
from httpx import AsyncClient

from careerguide.services import collections


class TestFaculties:

    @pytest.mark.asyncio
    async def test_create_and_list_faculties(self, client: AsyncClient, institution):
        created = await client.post('/api/institution/faculties', json={'name': 'Engineering'},
                                    headers=institution.headers)
        listed = await client.get('/api/institution/faculties', headers=institution.headers)

        assert created.status_code == 201
        assert [f['name'] for f in listed.json()['faculties']] == ['Engineering']


class TestCourses:

    @pytest.mark.asyncio
    async def test_create_course_resolves_faculty(self, client: AsyncClient, store, institution):
        faculty = store.seed(collections.FACULTIES, 'fac-1', {'institutionId': institution.uid, 'name': 'Science'})

        response = await client.post('/api/institution/courses', json={
            'name': 'Data Science',
            'code': 'DS200',
            'facultyId': faculty['id'],
            'totalSeats': 30,
            'requirements': ['statistics'],
        }, headers=institution.headers)

        assert response.status_code == 201
        course = response.json()['course']
        assert course['faculty'] == 'Science'
        assert course['availableSeats'] == 30
        assert course['status'] == 'ACTIVE'
        assert course['institutionId'] == institution.uid

    @pytest.mark.asyncio
    async def test_create_course_with_foreign_faculty(self, client: AsyncClient, store, institution):
        store.seed(collections.FACULTIES, 'fac-other', {'institutionId': 'someone-else', 'name': 'Law'})

        response = await client.post('/api/institution/courses', json={
            'name': 'Law', 'code': 'LW1', 'facultyId': 'fac-other', 'totalSeats': 5,
        }, headers=institution.headers)

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid faculty'

    @pytest.mark.asyncio
    async def test_create_course_rejects_negative_seats(self, client: AsyncClient, institution):
        response = await client.post('/api/institution/courses', json={
            'name': 'Broken', 'code': 'X1', 'totalSeats': -1,
        }, headers=institution.headers)

        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'

    @pytest.mark.asyncio
    async def test_list_courses_includes_application_counts(self, client: AsyncClient, institution, course, application):
        response = await client.get('/api/institution/courses', headers=institution.headers)

        courses = response.json()['courses']
        assert len(courses) == 1
        assert courses[0]['applicationCount'] == 1

    @pytest.mark.asyncio
    async def test_courses_of_other_institutions_are_hidden(self, client: AsyncClient, new_account, course):
        other = new_account('institution')

        listed = await client.get('/api/institution/courses', headers=other.headers)
        fetched = await client.get(f"/api/institution/courses/{course['id']}", headers=other.headers)

        assert listed.json()['courses'] == []
        assert fetched.status_code == 404

    @pytest.mark.asyncio
    async def test_update_total_seats_keeps_taken_seats(self, client: AsyncClient, store, institution, course):
        await store.update(collections.COURSES, course['id'], {'availableSeats': 1})  # one seat taken

        response = await client.put(f"/api/institution/courses/{course['id']}", json={'totalSeats': 10},
                                    headers=institution.headers)

        assert response.status_code == 200
        saved = await store.get(collections.COURSES, course['id'])
        assert saved['totalSeats'] == 10
        assert saved['availableSeats'] == 9

    @pytest.mark.asyncio
    async def test_toggle_status_twice_restores_original(self, client: AsyncClient, store, institution, course):
        url = f"/api/institution/courses/{course['id']}/status"

        first = await client.put(url, headers=institution.headers)
        assert first.json()['course']['status'] == 'INACTIVE'

        second = await client.put(url, headers=institution.headers)
        assert second.json()['course']['status'] == 'ACTIVE'
        assert (await store.get(collections.COURSES, course['id']))['status'] == 'ACTIVE'

    @pytest.mark.asyncio
    async def test_explicit_status(self, client: AsyncClient, store, institution, course):
        response = await client.put(f"/api/institution/courses/{course['id']}/status",
                                    json={'status': 'INACTIVE'}, headers=institution.headers)

        assert response.status_code == 200
        assert (await store.get(collections.COURSES, course['id']))['status'] == 'INACTIVE'

    @pytest.mark.asyncio
    async def test_status_change_detects_concurrent_write(self, client: AsyncClient, store, institution, course):
        def concurrent_toggle(collection, doc_id):
            store.collections[collection][doc_id]['status'] = 'INACTIVE'

        store.before_compare = concurrent_toggle
        response = await client.put(f"/api/institution/courses/{course['id']}/status", headers=institution.headers)

        assert response.status_code == 409
        assert response.json()['code'] == 'STALE_STATUS'
