"""Test helper utilities."""

import asyncio
import json

from uniswap_explorer.graphql import GraphQLResponse


def request_key(query, variables):
    return query, json.dumps(variables or {}, sort_keys=True)


class FakeGraphQLClient:
    """GraphQLClient stand-in whose requests complete only when a test resolves them."""

    def __init__(self):
        self.calls = []
        self._futures = {}

    async def execute(self, url, query, variables=None):
        key = request_key(query, variables)
        self.calls.append(key)
        future = asyncio.get_running_loop().create_future()
        self._futures[key] = future
        return await future

    def call_count(self, descriptor):
        return self.calls.count(request_key(descriptor.document, descriptor.variables()))

    def _future(self, descriptor):
        key = request_key(descriptor.document, descriptor.variables())
        assert key in self._futures, f"no request issued for {descriptor.name}"
        return self._futures[key]

    def resolve(self, descriptor, data):
        self._future(descriptor).set_result(GraphQLResponse(data=data))

    def respond(self, descriptor, response):
        self._future(descriptor).set_result(response)

    def fail(self, descriptor, exc):
        self._future(descriptor).set_exception(exc)


async def settle(rounds=5):
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def run(coro):
    return asyncio.run(coro)
