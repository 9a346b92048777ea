
# RUN: python -m unittest discover -s tests -k refs

import logging
import unittest

from pyrsistent import pmap, pvector

from refstruct import (
    ConditionView,
    Context,
    DataType,
    DataView,
    Evaluator,
    KeyRef,
    ListDataType,
    ListFilterRef,
    ListFindRef,
    ListMapRef,
    RecordDataType,
    RefError,
    ValueView,
    ViewId,
    ViewRef,
    parse_ref,
    tonode,
)


def equals(value):
    "Predicate view: the item itself equals value."
    return ConditionView('=', (DataView(KeyRef('')), ValueView(value)))


LETTERS = ListDataType('letters', item_type=DataType('letter'))


class TestKeyRef(unittest.TestCase):

    def test_round_trip(self):
        ref = KeyRef('k')
        container = pmap({'a': 1})
        out = ref.set_value(DataType('c'), container, 'v')
        self.assertEqual(ref.get_value(DataType('c'), out), 'v')
        self.assertEqual(container, pmap({'a': 1}))
        self.assertEqual(out, pmap({'a': 1, 'k': 'v'}))

    def test_identity(self):
        ref = KeyRef('')
        container = pmap({'a': 1})
        self.assertIs(ref.get_value(DataType('c'), container), container)
        self.assertIs(ref.set_value(DataType('c'), container, pmap()), container)

    def test_absent_container(self):
        ref = KeyRef('k')
        self.assertIsNone(ref.get_value(DataType('c'), None))
        with self.assertRaises(RefError):
            ref.set_value(DataType('c'), None, 1)

    def test_non_container(self):
        with self.assertRaises(RefError):
            KeyRef('k').set_value(DataType('c'), 'text', 1)

    def test_list_index(self):
        items = pvector(['a', 'b'])
        self.assertEqual(KeyRef(1).get_value(LETTERS, items), 'b')
        self.assertEqual(KeyRef('1').get_value(LETTERS, items), 'b')
        self.assertIsNone(KeyRef(5).get_value(LETTERS, items))
        self.assertEqual(KeyRef(0).set_value(LETTERS, items, 'z'), pvector(['z', 'b']))
        self.assertEqual(KeyRef(2).set_value(LETTERS, items, 'c'), pvector(['a', 'b', 'c']))
        with self.assertRaises(RefError):
            KeyRef(3).set_value(LETTERS, items, 'd')
        for key in ('foo', '-1', -1):
            with self.assertRaises(RefError):
                KeyRef(key).set_value(LETTERS, items, 'd')

    def test_invalid_map_key(self):
        with self.assertRaises(RefError):
            KeyRef(True).set_value(DataType('c'), pmap({'a': 1}), 2)

    def test_display(self):
        self.assertEqual(KeyRef('age').get_display(), 'age')
        self.assertEqual(str(KeyRef('age')), 'age')
        self.assertEqual(parse_ref('r:age').get_display(), 'age')

    def test_equality(self):
        self.assertEqual(KeyRef('a'), KeyRef('a'))
        self.assertEqual(hash(KeyRef('a')), hash(KeyRef('a')))
        self.assertNotEqual(KeyRef('a'), KeyRef('b'))
        self.assertEqual(parse_ref('r:a'), parse_ref('a'))
        self.assertEqual(len({KeyRef('a'), KeyRef('a'), KeyRef('b')}), 2)
        self.assertEqual(KeyRef(0), KeyRef('0'))
        self.assertEqual(hash(KeyRef(0)), hash(KeyRef('0')))
        self.assertNotEqual(KeyRef(0), KeyRef('00'))


class TestViewRef(unittest.TestCase):

    def test_evaluates_view(self):
        ref = ViewRef(DataView(KeyRef('name')))
        self.assertEqual(ref.get_value(DataType('p'), pmap({'name': 'Al'})), 'Al')
        self.assertIsNone(ref.get_value(DataType('p'), None))

    def test_read_only(self):
        with self.assertRaises(RefError):
            ViewRef(ValueView(1)).set_value(DataType('p'), pmap(), 2)

    def test_view_id(self):
        total = DataView(KeyRef('total'))
        context = Context(Evaluator({'total': total}))
        ref = parse_ref('v:total')
        self.assertEqual(ref.get_value(DataType('p'), pmap({'total': 3}), context), 3)
        with self.assertRaises(RefError):
            ref.get_value(DataType('p'), pmap({'total': 3}))

    def test_view_id_nested_in_view(self):
        is_big = ConditionView('>', (DataView(KeyRef('total')), ValueView(10)))
        context = Context(Evaluator({'isBig': is_big}))
        ref = ViewRef(ConditionView('=', (ViewId('isBig'), ValueView(True))))
        self.assertTrue(ref.get_value(DataType('p'), pmap({'total': 30}), context))
        self.assertFalse(ref.get_value(DataType('p'), pmap({'total': 3}), context))

    def test_equality_by_view_identity(self):
        view = ValueView(1)
        self.assertEqual(ViewRef(view), ViewRef(view))
        self.assertEqual(hash(ViewRef(view)), hash(ViewRef(view)))
        self.assertNotEqual(ViewRef(view), ViewRef(ValueView(1)))
        self.assertNotEqual(parse_ref('q:a=1'), parse_ref('q:a=1'))
        self.assertNotEqual(ViewRef(view), KeyRef('1'))


class TestListRefs(unittest.TestCase):

    def test_multiplicity(self):
        view = ValueView(True)
        refs = [KeyRef('a'), ViewRef(view), ListFindRef(view),
                ListFilterRef(view), ListMapRef(view)]
        for ref in refs:
            self.assertEqual(ref.is_single_ref(), not ref.is_multi_ref())
        self.assertEqual([ref.is_multi_ref() for ref in refs],
                         [False, False, False, True, True])
        self.assertEqual([ref.is_list_ref() for ref in refs],
                         [False, False, True, True, True])
        self.assertTrue(ListFindRef(view).is_finder())
        self.assertTrue(ListFilterRef(view).is_filterer())
        self.assertTrue(ListMapRef(view).is_mapper())
        self.assertFalse(ListMapRef(view).is_finder())

    def test_find(self):
        items = pvector(['A', 'B', 'C'])
        self.assertEqual(ListFindRef(equals('B')).get_value(LETTERS, items), 'B')
        self.assertIsNone(ListFindRef(equals('Z')).get_value(LETTERS, items))

    def test_find_upsert(self):
        items = pvector(['A', 'B', 'C'])
        self.assertEqual(
            ListFindRef(equals('B')).set_value(LETTERS, items, 'N'),
            pvector(['A', 'N', 'C']))
        self.assertEqual(
            ListFindRef(equals('Z')).set_value(LETTERS, items, 'N'),
            pvector(['A', 'B', 'C', 'N']))
        self.assertEqual(items, pvector(['A', 'B', 'C']))

    def test_find_first_match(self):
        items = pvector(['A', 'B', 'A'])
        self.assertEqual(
            ListFindRef(equals('A')).set_value(LETTERS, items, 'N'),
            pvector(['N', 'B', 'A']))

    def test_filter(self):
        items = pvector(['A', 'B', 'A'])
        self.assertEqual(
            ListFilterRef(equals('A')).get_value(LETTERS, items),
            pvector(['A', 'A']))
        self.assertEqual(
            ListFilterRef(equals('Z')).get_value(LETTERS, items),
            pvector())

    def test_filter_replace(self):
        items = pvector(['A', 'B', 'A'])
        self.assertEqual(
            ListFilterRef(equals('A')).set_value(LETTERS, items, 'N'),
            pvector(['N', 'B', 'N']))
        self.assertEqual(
            ListFilterRef(equals('Z')).set_value(LETTERS, items, 'N'),
            items)

    def test_map(self):
        people = ListDataType('people', item_type=RecordDataType(
            'person', children=[DataType('name')]))
        items = tonode([{'name': 'Al'}, {'name': 'Bea'}])
        ref = ListMapRef(DataView(KeyRef('name')))
        self.assertEqual(ref.get_value(people, items), pvector(['Al', 'Bea']))
        with self.assertRaises(RefError):
            ref.set_value(people, items, 'X')

    def test_unset_view(self):
        items = pvector(['A'])
        self.assertIs(ListFindRef().get_value(LETTERS, items), items)
        self.assertIs(ListFilterRef().get_value(LETTERS, items), items)
        with self.assertRaises(RefError):
            ListFindRef().set_value(LETTERS, items, 'N')

    def test_requires_list_type(self):
        ref = ListFindRef(equals('A'))
        with self.assertRaises(RefError) as ctx:
            ref.get_value(DataType('letter'), pvector(['A']))
        self.assertIn('non-list based data type', str(ctx.exception))

    def test_requires_list_value(self):
        calls = []

        def evaluate(view, owner_type, owner_value, options):
            calls.append(owner_value)
            return True

        ref = ListFilterRef('any')
        for value in (None, ['A'], pmap({'a': 'A'})):
            with self.assertRaises(RefError):
                ref.get_value(LETTERS, value, Context(evaluate))
        self.assertEqual(calls, [])

    def test_injected_evaluator(self):
        seen = []

        def evaluate(view, owner_type, owner_value, options):
            seen.append((view, owner_type.name, options.get('mode')))
            return owner_value.startswith(view)

        context = Context(evaluate, {'mode': 'test'})
        items = pvector(['apple', 'banana', 'avocado'])
        ref = ListFilterRef('a')
        self.assertEqual(ref.get_value(LETTERS, items, context),
                         pvector(['apple', 'avocado']))
        self.assertEqual(seen[0], ('a', 'letter', 'test'))
        self.assertEqual(ref.get_display(), 'a')

    def test_left_to_right(self):
        order = []

        def evaluate(view, owner_type, owner_value, options):
            order.append(owner_value)
            return owner_value == 'B'

        items = pvector(['A', 'B', 'C'])
        ListFindRef('b').get_value(LETTERS, items, Context(evaluate))
        self.assertEqual(order, ['A', 'B'])

    def test_list_item_warning(self):
        nested = ListDataType('rows', item_type=LETTERS)
        items = tonode([['A'], ['B']])
        ref = ListFilterRef(ConditionView('=', (
            DataView(KeyRef(0)), ValueView('A'))))
        with self.assertLogs('refstruct.refs', level=logging.WARNING):
            out = ref.set_value(nested, items, pvector(['N']))
        self.assertEqual(out, tonode([['N'], ['B']]))


if __name__ == "__main__":
    unittest.main()
