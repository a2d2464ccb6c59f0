"""Tests for the client IP allow-list."""

from __future__ import annotations

import itertools

import pytest

from spa_edge.routing.access import AccessGuard, is_allowed, is_open


# =====================================================================
# Open access
# =====================================================================


class TestOpenAccess:

    @pytest.mark.parametrize('allow_list', [(), ('',), ('  ',), ('', ' ')])
    @pytest.mark.parametrize('ip', ['10.0.0.5', '203.0.113.9', '', '::1'])
    def test_empty_or_blank_allows_everyone(self, allow_list, ip):
        assert is_allowed(allow_list, ip) is True

    def test_guard_reports_open(self):
        assert AccessGuard().is_open is True
        assert AccessGuard(['']).is_open is True
        assert AccessGuard(['10.0.0.']).is_open is False


# =====================================================================
# Restricted access
# =====================================================================


class TestRestrictedAccess:

    def test_exact_match(self):
        assert is_allowed(['203.0.113.9'], '203.0.113.9') is True

    def test_prefix_match(self):
        assert is_allowed(['192.168.1.'], '192.168.1.23') is True

    def test_prefix_entry_is_trimmed(self):
        assert is_allowed([' 192.168.1.'], '192.168.1.23') is True

    def test_other_addresses_denied(self):
        assert is_allowed(['192.168.1.'], '192.168.2.23') is False

    def test_prefix_has_no_delimiter_awareness(self):
        assert is_allowed(['192.168.1.2'], '192.168.1.23') is True

    def test_empty_client_ip_is_denied(self):
        assert is_allowed(['10.0.0.'], '') is False

    @pytest.mark.parametrize('allow_list', [['10.0.0.', ''], ['10.0.0.', ' '], ['', '10.0.0.']])
    @pytest.mark.parametrize('ip', ['172.16.0.1', '10.0.0.1', ''])
    def test_blank_entry_admits_everyone(self, allow_list, ip):
        assert is_allowed(allow_list, ip) is True

    def test_any_entry_suffices(self):
        entries = ['10.0.0.', '172.16.', '203.0.113.9']
        for ip in ('10.0.0.7', '172.16.4.4', '203.0.113.9'):
            assert is_allowed(entries, ip) is True

    def test_order_is_irrelevant(self):
        entries = ['10.0.0.', '172.16.', '203.0.113.9']
        ips = ['10.0.0.7', '172.16.4.4', '203.0.113.9', '8.8.8.8', '']
        expected = [is_allowed(entries, ip) for ip in ips]
        for perm in itertools.permutations(entries):
            assert [is_allowed(perm, ip) for ip in ips] == expected

    def test_guard_binds_entries(self):
        guard = AccessGuard(('10.0.0.',))
        assert guard.entries == ('10.0.0.',)
        assert guard.allows('10.0.0.5') is True
        assert guard.allows('10.0.1.5') is False


def test_is_open_ignores_whitespace():
    assert is_open(['', '  ', '\t']) is True
    assert is_open(['', '10.']) is False
