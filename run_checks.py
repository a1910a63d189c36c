from fastapi.testclient import TestClient

from transit_civic.core.settings import Settings
from transit_civic.main import create_app
from transit_civic.storage import InMemoryStorage

client = TestClient(create_app(Settings(USE_MOCK_DB=True), storage=InMemoryStorage()))

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code, resp.json())

print('\nCONTRIBUTORS:')
print(client.get('/contributors').json())

print('\nESCALATION:')
print(client.get('/escalation', params={'type': 'LINE', 'targetId': '205', 'voteCount': 30}).json())
