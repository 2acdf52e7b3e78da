"""
Unit Tests for Company job postings
"""
import pytest
from httpx import AsyncClient

from careerguide.services import collections


class TestJobs:

    @pytest.mark.asyncio
    async def test_post_and_list_jobs(self, client: AsyncClient, company):
        created = await client.post('/api/company/jobs', json={
            'title': 'Junior Data Analyst', 'skills': ['python', 'sql'], 'location': 'Remote',
        }, headers=company.headers)
        listed = await client.get('/api/company/jobs', headers=company.headers)

        assert created.status_code == 201
        job = created.json()['job']
        assert job['company'] == 'Acme Analytics'
        assert job['status'] == 'OPEN'
        assert [j['id'] for j in listed.json()['jobs']] == [job['id']]

    @pytest.mark.asyncio
    async def test_close_job(self, client: AsyncClient, store, company):
        job = store.seed(collections.JOBS, 'job-1', {'companyId': company.uid, 'title': 'Intern', 'status': 'OPEN'})

        response = await client.put(f"/api/company/jobs/{job['id']}/status", json={'status': 'CLOSED'},
                                    headers=company.headers)

        assert response.status_code == 200
        assert (await store.get(collections.JOBS, job['id']))['status'] == 'CLOSED'

    @pytest.mark.asyncio
    async def test_cannot_edit_other_companies_jobs(self, client: AsyncClient, store, company):
        store.seed(collections.JOBS, 'job-x', {'companyId': 'rival', 'title': 'Intern', 'status': 'OPEN'})

        response = await client.put('/api/company/jobs/job-x', json={'title': 'Hijacked'}, headers=company.headers)

        assert response.status_code == 404
        assert (await store.get(collections.JOBS, 'job-x'))['title'] == 'Intern'
