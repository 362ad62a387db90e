# ------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for
# license information.
# ------------------------------------------------------------------------------

from collections import OrderedDict
from jmespath import compile as compile_jmes, Options


def deploy_table_format(results):
    """Format deployment step results for display with "-o table"."""
    return [_table_format(r, _DEPLOY_QUERY) for r in results]


def show_table_format(results):
    """Format resource states for display with "-o table"."""
    return [_table_format(r, _SHOW_QUERY) for r in results]


def smoke_table_format(results):
    """Format smoke test checks for display with "-o table"."""
    return [_table_format(r, _TEST_QUERY) for r in results]


def step_list_table_format(results):
    return [_table_format(r, _STEP_LIST_QUERY) for r in results]


_DEPLOY_QUERY = """{
    step: step,
    status: status,
    resourceId: resourceId
}"""

_SHOW_QUERY = """{
    step: step,
    state: state,
    healthy: healthy,
    resourceId: resourceId
}"""

_TEST_QUERY = """{
    check: check,
    status: status,
    detail: detail
}"""

_STEP_LIST_QUERY = """{
    order: order,
    name: name,
    description: description
}"""


def _table_format(result, query):
    parsed = compile_jmes(query)
    # use ordered dicts so headers are predictable
    return parsed.search(result, Options(dict_cls=OrderedDict))
