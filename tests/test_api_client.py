"""
API client tests

Facade behaviour on the fake transport (cache, force flag, endpoint
templates), then the real aiohttp transport using aioresponses for clean
HTTP mocking.
"""
import asyncio
import json

import aiohttp
import pytest
from aioresponses import aioresponses
from unittest.mock import patch
from yarl import URL

from api.client import DiscordClient, get_api_client
from api.endpoints import EndpointDescriptor
from exceptions import (
    APIException,
    ConfigurationException,
    ResponseParseException,
    TransportException,
    ValidationException
)
from tests.factories import channel_data, make_config, message_data, response, user_data

BASE = 'https://discord.test/api/v10'


class TestClientConstruction:
    """Test client configuration handling."""

    def test_missing_token_raises(self):
        with pytest.raises(ConfigurationException, match="token"):
            DiscordClient(config=make_config(token=None))

    def test_missing_base_url_raises(self):
        with pytest.raises(ConfigurationException, match="base URL"):
            DiscordClient(config=make_config(api_base_url=''))

    def test_explicit_token_overrides_config(self, transport, clock):
        client = DiscordClient(token='other', config=make_config(), transport=transport, clock=clock)
        assert client.headers['Authorization'] == 'other'

    def test_uses_global_config_by_default(self):
        with patch('api.client.get_config', return_value=make_config(token='from-env')):
            client = DiscordClient()

        assert client.token == 'from-env'
        assert client.base_url == BASE

    def test_pipeline_built_from_config(self, transport, clock):
        config = make_config(min_request_interval=0.25, cache_ttl=5.0, max_retries=1, retry_base_delay=2.0)
        client = DiscordClient(config=config, transport=transport, clock=clock)

        assert client.rate_limiter.min_interval == 0.25
        assert client.cache.default_ttl == 5.0
        assert client.retry_policy.max_retries == 1
        assert client.retry_policy.base_delay == 2.0

    def test_each_client_owns_its_state(self, transport, clock):
        first = DiscordClient(config=make_config(), transport=transport, clock=clock)
        second = DiscordClient(config=make_config(), transport=transport, clock=clock)

        assert first.cache is not second.cache
        assert first.queue is not second.queue
        assert first.rate_limiter is not second.rate_limiter


class TestCaching:
    """Test cache behaviour of request()."""

    @pytest.mark.asyncio
    async def test_repeat_request_within_ttl_hits_cache(self, client, transport):
        """Test that two identical requests within TTL make one network call."""
        transport.script(response(200, user_data()))

        first = await client.request('/users/@me')
        second = await client.request('/users/@me')

        assert first == second == user_data()
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_request_after_ttl_goes_to_network(self, client, transport, clock):
        transport.default = response(200, user_data())

        await client.request('/users/@me')
        clock.advance(61.0)
        await client.request('/users/@me')

        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_scenario_hit_at_50ms_miss_at_150ms(self, transport, clock):
        client = DiscordClient(config=make_config(cache_ttl=0.1), transport=transport, clock=clock)
        transport.script(response(200, {'id': '1'}))
        key = EndpointDescriptor.build('/users/@me').cache_key

        await client.request('/users/@me')

        clock.advance(0.05)
        assert client.cache.get(key) == {'id': '1'}
        clock.advance(0.1)
        assert client.cache.get(key) is None

    @pytest.mark.asyncio
    async def test_force_skips_read_but_refreshes_cache(self, client, transport):
        transport.script(response(200, {'v': 1}), response(200, {'v': 2}))

        assert await client.request('/a') == {'v': 1}
        assert await client.request('/a', force=True) == {'v': 2}
        assert await client.request('/a') == {'v': 2}
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_different_bodies_use_different_entries(self, client, transport):
        transport.script(response(200, 'one'), response(200, 'two'))

        assert await client.request('/a', method='POST', json={'n': 1}) == 'one'
        assert await client.request('/a', method='POST', json={'n': 2}) == 'two'
        assert await client.request('/a', method='POST', json={'n': 1}) == 'one'
        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_clear_cache(self, client, transport):
        transport.default = response(200, {'ok': True})

        await client.request('/a')
        client.clear_cache()
        await client.request('/a')

        assert len(transport.calls) == 2


class TestRequestShape:
    """Test what goes over the wire."""

    @pytest.mark.asyncio
    async def test_default_headers(self, client, transport):
        transport.script(response(200, {}))

        await client.request('/users/@me')

        headers = transport.calls[0].headers
        assert headers['Authorization'] == 'test-token'
        assert headers['Content-Type'] == 'application/json'
        assert 'User-Agent' in headers

    @pytest.mark.asyncio
    async def test_token_is_passed_verbatim(self, transport, clock):
        client = DiscordClient(token='Bot abc.def', config=make_config(), transport=transport, clock=clock)
        transport.script(response(200, {}))

        await client.request('/users/@me')

        assert transport.calls[0].headers['Authorization'] == 'Bot abc.def'

    @pytest.mark.asyncio
    async def test_request_headers_override_defaults(self, client, transport):
        transport.script(response(200, {}))

        await client.request('/a', headers={'X-Audit-Log-Reason': 'cleanup', 'Content-Type': 'text/plain'})

        headers = transport.calls[0].headers
        assert headers['X-Audit-Log-Reason'] == 'cleanup'
        assert headers['Content-Type'] == 'text/plain'

    @pytest.mark.asyncio
    async def test_json_body_serialized(self, client, transport):
        transport.script(response(200, {}))

        await client.request('/a', method='post', json={'content': 'hi'})

        call = transport.calls[0]
        assert call.method == 'POST'
        assert json.loads(call.body) == {'content': 'hi'}


class TestConvenienceOperations:
    """Test typed endpoint wrappers."""

    @pytest.mark.asyncio
    async def test_get_current_user(self, client, transport):
        transport.script(response(200, user_data()))

        assert await client.get_current_user() == user_data()
        assert transport.calls[0].url == f'{BASE}/users/@me'

    @pytest.mark.asyncio
    async def test_get_guilds(self, client, transport):
        transport.script(response(200, []))

        assert await client.get_guilds() == []
        assert transport.calls[0].url == f'{BASE}/users/@me/guilds'

    @pytest.mark.asyncio
    async def test_get_guild_channels(self, client, transport):
        transport.script(response(200, [channel_data()]))

        await client.get_guild_channels(197038439483310086)

        assert transport.calls[0].url == f'{BASE}/guilds/197038439483310086/channels'

    @pytest.mark.asyncio
    async def test_get_channel_messages_default_limit(self, client, transport):
        transport.script(response(200, [message_data()]))

        await client.get_channel_messages('41771983423143937')

        assert transport.calls[0].url == f'{BASE}/channels/41771983423143937/messages?limit=30'

    @pytest.mark.asyncio
    async def test_get_channel_messages_custom_limit(self, client, transport):
        transport.script(response(200, []))

        await client.get_channel_messages('1', limit=50)

        assert transport.calls[0].url == f'{BASE}/channels/1/messages?limit=50'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101, -5])
    async def test_get_channel_messages_rejects_bad_limit(self, client, transport, limit):
        with pytest.raises(ValidationException):
            await client.get_channel_messages('1', limit=limit)

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_send_message(self, client, transport):
        transport.script(response(200, message_data(content='hello')))

        result = await client.send_message('1', 'hello')

        call = transport.calls[0]
        assert result['content'] == 'hello'
        assert call.method == 'POST'
        assert call.url == f'{BASE}/channels/1/messages'
        assert json.loads(call.body) == {'content': 'hello'}

    @pytest.mark.asyncio
    async def test_send_same_message_twice_sends_twice(self, client, transport):
        transport.default = response(200, message_data())

        await client.send_message('1', 'again')
        await client.send_message('1', 'again')

        assert len(transport.calls) == 2

    @pytest.mark.asyncio
    async def test_send_empty_message_rejected(self, client, transport):
        with pytest.raises(ValidationException):
            await client.send_message('1', '   ')

        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_get_channel_members(self, client, transport):
        members = [{'user': user_data(), 'nick': None, 'roles': []}]
        transport.script(response(200, channel_data(guild_id='99')), response(200, members))

        assert await client.get_channel_members('5') == members
        assert transport.urls == [f'{BASE}/channels/5', f'{BASE}/guilds/99/members?limit=50']

    @pytest.mark.asyncio
    async def test_get_channel_members_for_dm_is_empty(self, client, transport):
        transport.script(response(200, channel_data(type=1, guild_id=None, name=None)))

        assert await client.get_channel_members('5') == []
        assert len(transport.calls) == 1


class TestLifecycle:
    """Test close and context manager helpers."""

    @pytest.mark.asyncio
    async def test_close_closes_transport_and_clears_cache(self, client, transport):
        transport.script(response(200, {'ok': True}))
        await client.request('/a')

        await client.close()

        assert transport.closed
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_close_drains_queued_jobs_first(self, client, transport):
        """Test that jobs queued before close() are sent before the transport closes."""
        transport.default = response(200, {'ok': True})
        sent_before_close = []

        async def record_close():
            sent_before_close.append(len(transport.calls))
            transport.closed = True

        tasks = [asyncio.ensure_future(client.request(f'/items/{i}')) for i in range(3)]
        await asyncio.sleep(0)
        assert len(client.queue) > 0

        with patch.object(transport, 'close', side_effect=record_close):
            await client.close()

        assert sent_before_close == [3]
        assert transport.closed
        assert len(client.cache) == 0
        assert not client.queue.processing
        assert await asyncio.gather(*tasks) == [{'ok': True}] * 3

    @pytest.mark.asyncio
    async def test_async_context_manager(self, client_config, transport, clock):
        async with DiscordClient(config=client_config, transport=transport, clock=clock) as client:
            assert isinstance(client, DiscordClient)

        assert transport.closed

    @pytest.mark.asyncio
    async def test_get_api_client_context_manager(self, client_config, transport, clock):
        async with get_api_client('tok', config=client_config, transport=transport, clock=clock) as client:
            assert client.token == 'tok'

        assert transport.closed


class TestClientWithAioresponses:
    """Test the real aiohttp transport with aioresponses for HTTP mocking."""

    @pytest.fixture
    def config(self):
        return make_config(min_request_interval=0.0, retry_base_delay=0.001, max_retries=1)

    @pytest.mark.asyncio
    async def test_get_request_success(self, config):
        """Test successful GET request."""
        with aioresponses() as m:
            m.get(f'{BASE}/users/@me', payload=user_data(), status=200)

            async with DiscordClient(config=config) as client:
                result = await client.get_current_user()

            assert result == user_data()
            request = m.requests[('GET', URL(f'{BASE}/users/@me'))][0]
            assert request.kwargs['headers']['Authorization'] == 'test-token'

    @pytest.mark.asyncio
    async def test_get_with_query_string(self, config):
        with aioresponses() as m:
            m.get(f'{BASE}/channels/1/messages?limit=30', payload=[message_data()], status=200)

            async with DiscordClient(config=config) as client:
                result = await client.get_channel_messages('1')

            assert result[0]['id'] == message_data()['id']

    @pytest.mark.asyncio
    async def test_post_request_success(self, config):
        """Test successful POST request."""
        with aioresponses() as m:
            m.post(f'{BASE}/channels/1/messages', payload=message_data(content='hi'), status=200)

            async with DiscordClient(config=config) as client:
                result = await client.send_message('1', 'hi')

            assert result['content'] == 'hi'
            request = m.requests[('POST', URL(f'{BASE}/channels/1/messages'))][0]
            assert json.loads(request.kwargs['data']) == {'content': 'hi'}

    @pytest.mark.asyncio
    async def test_server_error_then_success(self, config):
        with aioresponses() as m:
            m.get(f'{BASE}/users/@me', status=500, body='Internal Server Error')
            m.get(f'{BASE}/users/@me', payload={'id': '1'}, status=200)

            async with DiscordClient(config=config) as client:
                assert await client.get_current_user() == {'id': '1'}

    @pytest.mark.asyncio
    async def test_error_after_budget(self, config):
        """Test that the final rejection carries status and body text."""
        with aioresponses() as m:
            m.get(f'{BASE}/guilds/1/channels', status=403, body='Missing Access')
            m.get(f'{BASE}/guilds/1/channels', status=403, body='Missing Access')

            async with DiscordClient(config=config) as client:
                with pytest.raises(APIException, match="HTTP 403: Missing Access") as exc_info:
                    await client.get_guild_channels(1)

            assert exc_info.value.status == 403

    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, config):
        with aioresponses() as m:
            m.get(f'{BASE}/users/@me/guilds', status=429, headers={'Retry-After': '0'},
                  payload={'message': 'You are being rate limited.', 'retry_after': 0})
            m.get(f'{BASE}/users/@me/guilds', payload=[], status=200)

            async with DiscordClient(config=config) as client:
                assert await client.get_guilds() == []

    @pytest.mark.asyncio
    async def test_network_error(self, config):
        """Test that connection errors surface as TransportException after retries."""
        with aioresponses() as m:
            m.get(f'{BASE}/users/@me', exception=aiohttp.ClientConnectionError('refused'))
            m.get(f'{BASE}/users/@me', exception=aiohttp.ClientConnectionError('refused'))

            async with DiscordClient(config=config) as client:
                with pytest.raises(TransportException, match="Network error"):
                    await client.get_current_user()

    @pytest.mark.asyncio
    async def test_malformed_json(self, config):
        with aioresponses() as m:
            m.get(f'{BASE}/users/@me', status=200, body='{"id": ')

            async with DiscordClient(config=config) as client:
                with pytest.raises(ResponseParseException):
                    await client.get_current_user()

    @pytest.mark.asyncio
    async def test_no_content_response(self, config):
        with aioresponses() as m:
            m.delete(f'{BASE}/channels/1/messages/2', status=204)

            async with DiscordClient(config=config) as client:
                assert await client.request('/channels/1/messages/2', method='DELETE') is None
