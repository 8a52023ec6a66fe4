from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from domain.models.currency import RateSource
from tests.fakes import StubProvider, make_rate


def test_convert_currency_success(client, rate_cache):
    rate_cache.entries['rate:USD:EUR'] = make_rate('USD', 'EUR', '0.85')

    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '100.00'})

    assert response.status_code == 200
    data = response.json()

    assert data['data']['from'] == 'USD'
    assert data['data']['to'] == 'EUR'
    assert data['data']['amount'] == '100.00'
    assert data['data']['result'] == '85.00'
    assert data['data']['rate'] == '0.85'
    assert 'last_updated' in data['data']
    assert data['meta']['source'] == 'local_cache'
    assert data['meta']['warnings'] == []
    assert data['meta']['execution_time_ms'] >= 0


def test_convert_lowercase_codes(client, rate_cache):
    rate_cache.entries['rate:USD:EUR'] = make_rate('USD', 'EUR', '0.85')

    response = client.get('/api/v1/convert', params={'from': 'usd', 'to': 'eur', 'amount': '50.75'})

    assert response.status_code == 200
    data = response.json()['data']
    assert data['result'] == '43.14'
    assert Decimal(data['exact_result']) == Decimal('43.1375')


def test_convert_same_currency(client):
    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'USD', 'amount': '50'})

    assert response.status_code == 200
    body = response.json()
    assert body['data']['result'] == '50.00'
    assert body['data']['rate'] == '1.0'
    assert body['meta']['source'] == 'same_currency'


@pytest.mark.parametrize('providers', [[StubProvider('primary', '0.9', source=RateSource.EXTERNAL_FALLBACK_1)]])
def test_convert_through_provider(client, providers):
    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '10'})

    assert response.status_code == 200
    assert response.json()['meta']['source'] == 'external_fallback_1'
    assert providers[0].calls == 1


def test_convert_stale_rate_carries_warning(client, rate_store):
    observed = datetime.now(UTC) - timedelta(hours=3)
    rate_store.rates[('USD', 'EUR')] = make_rate('USD', 'EUR', '0.85', timestamp=observed)

    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '10'})

    assert response.status_code == 200
    meta = response.json()['meta']
    assert meta['source'] == 'local_db'
    assert len(meta['warnings']) == 1
    assert 'stale' in meta['warnings'][0]


def test_convert_unsupported_currency(client):
    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'XYZ', 'amount': '10'})

    assert response.status_code == 400
    assert response.json()['error'] == 'Unsupported currency'


@pytest.mark.parametrize('amount', ['0', '-5', 'abc', '1_000', '1000000000000'])
def test_convert_invalid_amount(client, amount):
    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': amount})

    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid amount'


def test_convert_missing_parameters(client):
    response = client.get('/api/v1/convert', params={'from': 'USD'})

    assert response.status_code == 422


def test_convert_no_rate_available(client):
    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '10'})

    assert response.status_code == 503
    assert response.json()['error'] == 'Exchange rate temporarily unavailable'


def test_convert_sets_rate_limit_headers(client, rate_cache):
    rate_cache.entries['rate:USD:EUR'] = make_rate('USD', 'EUR', '0.85')

    response = client.get(
        '/api/v1/convert',
        params={'from': 'USD', 'to': 'EUR', 'amount': '1'},
        headers={'X-User-Id': 'alice'},
    )

    assert response.status_code == 200
    assert response.headers['X-RateLimit-Limit-User'] == '500'
    assert response.headers['X-RateLimit-Remaining-User'] == '499'
    assert response.headers['X-RateLimit-Limit-IP'] == '1000'
    assert response.headers['X-RateLimit-Remaining-IP'] == '999'


def test_convert_user_rate_limit_exceeded(client, counter_store, rate_cache):
    rate_cache.entries['rate:USD:EUR'] = make_rate('USD', 'EUR', '0.85')
    counter_store.values['rate_limit:user:alice'] = '500'

    response = client.get(
        '/api/v1/convert',
        params={'from': 'USD', 'to': 'EUR', 'amount': '1'},
        headers={'X-User-Id': 'alice'},
    )

    assert response.status_code == 429
    assert response.headers['Retry-After'] == '60'
    assert response.json()['retry_after'] == 60
    assert rate_cache.get_calls == []


def test_convert_ip_rate_limit_exceeded(client, counter_store):
    counter_store.values['rate_limit:ip:testclient'] = '1000'

    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '1'})

    assert response.status_code == 429
    assert 'IP' in response.json()['error']


def test_convert_admits_requests_when_counter_store_is_down(client, counter_store, rate_cache):
    rate_cache.entries['rate:USD:EUR'] = make_rate('USD', 'EUR', '0.85')
    counter_store.fail = True

    response = client.get('/api/v1/convert', params={'from': 'USD', 'to': 'EUR', 'amount': '1'})

    assert response.status_code == 200
