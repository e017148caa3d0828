"""Test suite for formdesk.

This package contains tests for:
- Field registry (registration, dirty tracking, snapshot, reset, load)
- Validation engine (rule order, data types, custom validators)
- Trigger dispatch and ON_ERROR routing
- LOV resolution by result cardinality
- Query-mode state machine (enter/execute query, save gating)
- Navigation, configuration and declarative form definitions
- End-to-end controller scenarios
"""
