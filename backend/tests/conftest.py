"""
Career Guidance API - Test Configuration and Fixtures
"""
import os
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DEBUG'] = 'false'
os.environ['LOG_FILE'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'
os.environ['SEND_VERIFICATION_EMAIL'] = 'true'

from careerguide.main import app
from careerguide.services import collections
from careerguide.services.firebase import get_document_store, get_file_storage, get_identity_provider

from mocks.mock_firebase import FakeFileStorage, FakeIdentityProvider, InMemoryDocumentStore

fake = Faker()


@dataclass
class Account:
    uid: str
    role: str
    email: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {'Authorization': f'Bearer {self.token}'}


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def storage() -> FakeFileStorage:
    return FakeFileStorage()


@pytest.fixture
def overrides(store, identity, storage):
    """Route every provider dependency to the in-memory fakes"""
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_file_storage] = lambda: storage
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(overrides) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with provider overrides"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac


def make_account(store: InMemoryDocumentStore, identity: FakeIdentityProvider, role: str,
                 profile: Dict = None) -> Account:
    uid = f'{role}-{fake.uuid4()[:8]}'
    email = fake.email()
    store.seed(collections.USERS, uid, {
        'email': email,
        'role': role,
        'profileData': profile or {'name': fake.name()},
        'createdAt': datetime.utcnow().isoformat(),
    })
    token = identity.issue_token(uid, role, email)
    return Account(uid=uid, role=role, email=email, token=token)


@pytest.fixture
def student(store, identity) -> Account:
    """Student with a few skills for recommendation matching"""
    return make_account(store, identity, 'student', {
        'name': fake.name(),
        'skills': ['python', 'data analysis'],
        'interests': ['computer science'],
        'gpa': 3.6,
        'year': '2',
    })


@pytest.fixture
def institution(store, identity) -> Account:
    return make_account(store, identity, 'institution', {'name': 'Riverside University'})


@pytest.fixture
def company(store, identity) -> Account:
    return make_account(store, identity, 'company', {'name': 'Acme Analytics'})


@pytest.fixture
def course(store, institution) -> Dict:
    """Active course with two seats"""
    return store.seed(collections.COURSES, 'course-cs', {
        'institutionId': institution.uid,
        'name': 'Computer Science',
        'code': 'CS101',
        'faculty': 'Engineering',
        'facultyId': None,
        'totalSeats': 2,
        'availableSeats': 2,
        'requirements': ['python', 'mathematics'],
        'status': 'ACTIVE',
        'createdAt': '2024-01-01T00:00:00',
    })


@pytest.fixture
def application(store, student, course) -> Dict:
    """Pending application from `student` to `course`"""
    return store.seed(collections.APPLICATIONS, 'application-1', {
        'studentId': student.uid,
        'courseId': course['id'],
        'institutionId': course['institutionId'],
        'status': 'PENDING',
        'appliedDate': '2024-03-01T10:00:00',
        'reviewNotes': '',
        'documents': ['https://storage.test/docs/transcript.pdf'],
    })


@pytest.fixture
def new_account(store, identity):
    """Factory for extra accounts: new_account('institution')"""
    def factory(role: str, profile: Dict = None) -> Account:
        return make_account(store, identity, role, profile)
    return factory
