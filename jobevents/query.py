"""
---------------
jobevents.query
---------------

Criteria for looking up events, and the compilation of criteria into SQL predicates.

Criteria fields are all optional. Every field that is set adds one predicate
fragment to the ``where`` clause of the select query; the fragments are joined
with ``and``. The values are never put in the SQL text - each fragment uses
``?`` placeholders and the values are returned separately, in the same order
as their placeholders, to be bound by the database layer.

.. code-block:: python

    query = TestEventQuery(job_id=10, event_names=['TargetIn', 'TargetOut'])
    fragments, params = compile_test_event_query(query)
    # fragments: ['job_id=?', 'event_name in (?, ?)']
    # params: [10, 'TargetIn', 'TargetOut']
    sql = assemble_query('select * from test_events', fragments)
    # select * from test_events where job_id=? and event_name in (?, ?)
"""
from jobevents.storeapi import EmptyCriteriaError


class EventQuery:
    """Criteria shared by both event categories.

    :param job_id: ``int``, match events of this job. ``0`` or ``None`` means not set.
    :param event_names: ``list`` of ``str``, match events with any of these names.
        A single ``str`` matches that one name.
    :param emitted_start_time: :class:`datetime.datetime`, match events emitted at or after this time.
    :param emitted_end_time: :class:`datetime.datetime`, match events emitted at or before this time.
    """
    def __init__(self, job_id=0, event_names=None, emitted_start_time=None, emitted_end_time=None):
        self.job_id = job_id
        if isinstance(event_names, str):
            event_names = [event_names]
        self.event_names = list(event_names) if event_names else []
        self.emitted_start_time = emitted_start_time
        self.emitted_end_time = emitted_end_time


class TestEventQuery(EventQuery):
    """Criteria for test events.

    In addition to the :class:`EventQuery` fields:

    :param run_id: ``int``, match events of this run. ``0`` or ``None`` means not set.
    :param test_name: ``str``, match events of this test.
    :param test_step_label: ``str``, match events of this test step.
    """

    def __init__(self, run_id=0, test_name='', test_step_label='', **kwargs):
        super(TestEventQuery, self).__init__(**kwargs)
        self.run_id = run_id
        self.test_name = test_name
        self.test_step_label = test_step_label


class FrameworkEventQuery(EventQuery):
    """Criteria for framework events. Has only the :class:`EventQuery` fields.
    """
    pass


def in_clause(column, count):
    """Builds a set membership fragment with ``count`` placeholders, e.g. ``name in (?, ?, ?)``.
    """
    return '%s in (%s)' % (column, ', '.join(['?'] * count))


def compile_event_query(query):
    """Compiles the criteria shared by both categories.

    :param query: :class:`EventQuery` or ``None``.

    Returns a tuple ``(fragments, params)`` of two lists: the predicate fragments
    and the values to bind to their placeholders.
    """
    fragments = []
    params = []
    if query is None:
        return fragments, params

    if query.job_id:
        fragments.append('job_id=?')
        params.append(query.job_id)

    if query.event_names:
        if len(query.event_names) == 1:
            fragments.append('event_name=?')
        else:
            fragments.append(in_clause('event_name', len(query.event_names)))
        params.extend(query.event_names)

    if query.emitted_start_time:
        fragments.append('emit_time>=?')
        params.append(query.emitted_start_time)

    if query.emitted_end_time:
        fragments.append('emit_time<=?')
        params.append(query.emitted_end_time)

    return fragments, params


def compile_test_event_query(query):
    """Compiles :class:`TestEventQuery` criteria.

    Returns a tuple ``(fragments, params)``, see :func:`compile_event_query`.
    """
    fragments, params = compile_event_query(query)
    if query is None:
        return fragments, params

    if query.run_id:
        fragments.append('run_id=?')
        params.append(query.run_id)

    if query.test_name:
        fragments.append('test_name=?')
        params.append(query.test_name)

    if query.test_step_label:
        fragments.append('test_step_label=?')
        params.append(query.test_step_label)

    return fragments, params


def compile_framework_event_query(query):
    """Compiles :class:`FrameworkEventQuery` criteria.

    Returns a tuple ``(fragments, params)``, see :func:`compile_event_query`.
    """
    return compile_event_query(query)


def assemble_query(base, fragments):
    """Appends the ``where`` clause built from the predicate fragments to the base query.

    :param base: ``str``, the base select statement.
    :param fragments: ``list`` of ``str``, predicate fragments.

    Returns the full query. Raises :class:`jobevents.storeapi.EmptyCriteriaError` if there
    are no fragments.
    """
    if not fragments:
        raise EmptyCriteriaError('no criteria set, the query should specify at least one criteria')
    return base + ' where ' + ' and '.join(fragments)
