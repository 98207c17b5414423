"""
Tests for the ReMarkup API: configuration, un_markup, re_markup and the
batch interface.
"""

import re
import threading

import pytest
from lxml import etree

from remarkup.api import ReMarkup
from remarkup.base import ReMarkupInput, ReMarkupOutput
from remarkup.exceptions import (ReMarkupCancelledError, ReMarkupConfigError,
                                 ReMarkupParseError, ReMarkupTypeError)
from remarkup.process import html_utils
from remarkup.process.filters import strip_spaces
from remarkup.process.html_utils import body_to_fragment, fragment_to_body

BANANAS_ORIGINAL = (
    '<span ng-show="true"><span>Bananas</span> are '
    '<em id="emphasized" style="background-color: red">great</em>!'
    '</span>'
)
BANANAS_GERMAN_CORRECT_NO_ID = '<span><span>Bananen</span> sind <em>toll</em>!</span>'
BANANAS_GERMAN_CORRECT_ID = (
    '<span><em id="emphasized">Toll</em> sind <span>Bananen</span>!</span>'
)
BANANAS_GERMAN_INCORRECT = '<span><span>Bananen</span> sind</span><em>toll!</em>'


def normalized(fragment):
    return body_to_fragment(fragment_to_body(fragment))


@pytest.fixture
def rm():
    return ReMarkup()


class TestConfig:

    def test_defaults(self, rm):
        assert rm.nonexistent_child_distance == 10
        assert rm.identity_attributes == ('id', 'translate-id', 'remarkup-id')
        assert len(rm.element_filters) == 1
        assert rm.timeout is None
        assert rm.raise_errors is False

    def test_additional_filters_are_appended(self):
        rm = ReMarkup(config={'additional_element_filters': [strip_spaces]})
        assert len(rm.element_filters) == 2
        assert rm.element_filters[-1] is strip_spaces

    def test_element_filters_replace_default(self):
        rm = ReMarkup(config={'element_filters': [strip_spaces]})
        assert rm.element_filters == (strip_spaces,)
        assert rm.un_markup('<b class="x">  a  </b>') == '<b class="x">a</b>'

    def test_zero_child_distance_is_kept(self):
        rm = ReMarkup(config={'nonexistent_child_distance': 0})
        assert rm.nonexistent_child_distance == 0

    @pytest.mark.parametrize('config', [
        'not a dict',
        {'unknown_key': 1},
        {'nonexistent_child_distance': -1},
        {'nonexistent_child_distance': '10'},
        {'nonexistent_child_distance': True},
        {'element_filters': ['not callable']},
        {'additional_element_filters': 'strip'},
        {'identity_attributes': 'id'},
        {'semantic_attributes': 'alt'},
        {'semantic_attributes': [42]},
        {'raw_element_metric': 'metric'},
        {'timeout': 0},
    ])
    def test_invalid_config(self, config):
        with pytest.raises(ReMarkupConfigError):
            ReMarkup(config=config)

    def test_config_is_copied(self):
        config = {'nonexistent_child_distance': 3}
        rm = ReMarkup(config=config)
        config['nonexistent_child_distance'] = 50
        assert rm.nonexistent_child_distance == 3

    def test_with_element_filter_returns_new_instance(self, rm):
        extended = rm.with_element_filter(strip_spaces)
        assert extended is not rm
        assert len(rm.element_filters) == 1
        assert len(extended.element_filters) == 2
        assert extended.un_markup('<b class="x">  a  </b>') == '<b>a</b>'

    def test_with_element_filter_rejects_non_callable(self, rm):
        with pytest.raises(ReMarkupConfigError):
            rm.with_element_filter('filter')


class TestUnMarkup:

    def test_strips_most_attributes(self, rm):
        modified = rm.un_markup(BANANAS_ORIGINAL)
        assert 'ng-show' not in modified
        assert 'style' not in modified
        assert 'id="emphasized"' in modified

    def test_keeps_text_content(self, rm):
        modified = rm.un_markup(BANANAS_ORIGINAL)
        assert 'Bananas are' in re.sub(r'<[^>]+>', '', modified)
        assert 'great' in modified

    def test_keeps_reserved_and_semantic_attributes(self, rm):
        modified = rm.un_markup(
            '<img src="a.png" alt="A" translate-id="7" class="c">'
            '<input type="submit" value="Go">'
        )
        assert modified == '<img alt="A" translate-id="7"><input type="submit" value="Go">'

    def test_custom_identity_attribute_is_preserved(self):
        rm = ReMarkup(config={'identity_attributes': ['id', 'data-key']})
        assert rm.un_markup('<b data-key="k" data-x="x">a</b>') == '<b data-key="k">a</b>'

    def test_plain_text(self, rm):
        assert rm.un_markup('just text') == 'just text'

    def test_comments_are_kept(self, rm):
        assert rm.un_markup('<b class="c">a</b><!-- note -->') == '<b>a</b><!-- note -->'

    def test_type_error(self, rm):
        with pytest.raises(ReMarkupTypeError):
            rm.un_markup(None)


class TestReMarkup:

    def test_identical_tree_structures(self, rm):
        remarked = rm.re_markup(BANANAS_ORIGINAL, BANANAS_GERMAN_CORRECT_NO_ID)
        assert re.search(r'<span[^>]+ng-show', remarked)
        assert re.search(r'<em[^>]+background-color', remarked)

    def test_different_structures_with_id(self, rm):
        remarked = rm.re_markup(BANANAS_ORIGINAL, BANANAS_GERMAN_CORRECT_ID)
        assert re.search(r'<span[^>]+ng-show', remarked)
        assert re.search(r'<em[^>]+background-color', remarked)

    def test_different_structures_when_possible(self, rm):
        remarked = rm.re_markup(BANANAS_ORIGINAL, BANANAS_GERMAN_INCORRECT)
        assert re.search(r'<span[^>]+ng-show', remarked)
        assert re.search(r'<em[^>]+background-color', remarked)

    @pytest.mark.parametrize('original', [
        BANANAS_ORIGINAL,
        '<div class="c" id="d"><p style="color: red" title="T">Hi '
        '<a href="/x" target="_blank">link</a></p><img src="a.png" alt="A"></div>',
        '<ul class="list"><li data-n="1">one</li><li data-n="2">two</li></ul>'
        '<p lang="en" dir="ltr">text</p>',
    ])
    def test_unmark_then_remark_restores_original(self, rm, original):
        assert rm.re_markup(original, rm.un_markup(original)) == normalized(original)

    def test_reorder_without_id(self, rm):
        remarked = rm.re_markup('<span>A</span><em id="x">B</em>', '<em>B2</em><span>A2</span>')
        assert remarked == '<em id="x">B2</em><span>A2</span>'

    def test_reorder_with_id_beats_position(self, rm):
        original = (
            '<span class="s">A</span><b>x</b><i>y</i>'
            '<em id="x" class="k">B</em>'
        )
        modified = '<em id="x">B2</em><span>A2</span><b>x</b><i>y</i>'
        remarked = rm.re_markup(original, modified)
        assert remarked.startswith('<em id="x" class="k">B2</em>')
        assert '<span class="s">A2</span>' in remarked

    def test_structural_drift(self, rm):
        remarked = rm.re_markup(
            '<p class="para" translate-id="1"><span class="a">one</span>'
            '<span class="b">two</span></p>',
            '<p translate-id="1"><span>1</span></p>',
        )
        assert remarked == '<p class="para" translate-id="1"><span class="a">1</span></p>'

    def test_structural_drift_cost(self, rm):
        matches = rm.match_elements(
            '<p translate-id="1"><span>one</span><span>two</span></p>',
            '<p translate-id="1"><span>1</span></p>',
        )
        assert [(m.original_index, m.modified_index) for m in matches] == [(0, 0), (1, 1)]
        # best child pair 5 plus one missing child 10; the paragraphs share an identity
        assert matches[0].cost == pytest.approx(15.0)
        assert matches[1].cost == pytest.approx(5.0)

    def test_translated_button_value_is_not_scored(self, rm):
        original = '<input type="submit" value="Send" class="b">'
        edited = rm.un_markup(original).replace('value="Send"', 'value="Senden ab"')
        [match] = rm.match_elements(original, edited)
        assert match.cost == pytest.approx(5.0)
        assert rm.re_markup(original, edited) == (
            '<input type="submit" value="Senden ab" class="b">'
        )

    def test_deep_sibling_can_outbid_identity(self, rm):
        # Two mismatched leaf-level pairs (16 + 16) are cheaper than keeping
        # the leaf span (5) and the span holding six elements (30) in place.
        original = (
            '<span class="a"></span>'
            '<span class="b"><i><b></b><b></b><b></b><b></b></i></span>'
        )
        unmarked = rm.un_markup(original)
        pairs = {
            (m.original_index, m.modified_index): m.cost
            for m in rm.match_elements(original, unmarked)
        }
        assert pairs[(0, 1)] == pytest.approx(16.0)
        assert pairs[(1, 0)] == pytest.approx(16.0)
        assert rm.re_markup(original, unmarked) == (
            '<span class="b"></span>'
            '<span class="a"><i><b></b><b></b><b></b><b></b></i></span>'
        )

    def test_semantic_attributes_are_not_overwritten(self, rm):
        remarked = rm.re_markup(
            '<img src="a.png" alt="Banana" class="pic">', '<img alt="Banane">'
        )
        assert remarked == '<img src="a.png" alt="Banane" class="pic">'

    def test_unmatched_modified_elements_keep_attributes(self, rm):
        remarked = rm.re_markup(
            '<b class="x">a</b>', '<b>a</b><i title="t" data-k="1">b</i>'
        )
        assert remarked == '<b class="x">a</b><i title="t" data-k="1">b</i>'

    def test_unmatched_original_elements_are_dropped(self, rm):
        remarked = rm.re_markup('<b class="x">a</b><i class="y">b</i>', '<b>ab</b>')
        assert remarked == '<b class="x">ab</b>'

    def test_no_element_gets_two_sources(self, rm):
        original = '<b class="1">a</b><b class="2">b</b><b class="3">c</b>'
        remarked = rm.re_markup(original, '<b>a</b><b>b</b>')
        classes = re.findall(r'class="(\d)"', remarked)
        assert len(classes) == 2
        assert len(set(classes)) == 2

    @pytest.mark.parametrize('original,modified', [
        ('plain text', '<b>x</b>'),
        ('<b>x</b>', 'just text  '),
        ('', ''),
        ('<!-- c -->', '<!-- d --> text'),
    ])
    def test_nothing_to_reconcile_returns_modified(self, rm, original, modified):
        assert rm.re_markup(original, modified) == modified

    def test_source_tree_is_not_mutated_by_filters(self, rm):
        calls = []

        def spy(element):
            calls.append(element.tag)

        rm = rm.with_element_filter(spy)
        assert rm.re_markup('<b class="c">x</b>', '<b>y</b>') == '<b class="c">y</b>'
        assert calls == ['b']

    def test_custom_metric(self):
        seen = []

        def metric(e1, e2, e1i, e2i, e1pl, e2pl):
            seen.append((e1.tag, e2.tag))
            # Prefer matching across tag names
            return 0.0 if e1.tag != e2.tag else 100.0

        rm = ReMarkup(config={'raw_element_metric': metric})
        remarked = rm.re_markup('<b class="1">x</b><i class="2">y</i>', '<b>x</b><i>y</i>')
        assert remarked == '<b class="2">x</b><i class="1">y</i>'
        assert len(seen) == 4

    def test_type_errors(self, rm):
        with pytest.raises(ReMarkupTypeError):
            rm.re_markup(None, '<b></b>')
        with pytest.raises(ReMarkupTypeError):
            rm.re_markup('<b></b>', b'<b></b>')
        with pytest.raises(ReMarkupTypeError):
            rm.match_elements('<b></b>', 3)

    @pytest.mark.parametrize('fragment', [
        '<b>a\x00b</b>',
        '<p title="x\x1by">text</p>',
        'form\x0cfeed',
    ])
    def test_control_characters_are_rejected(self, rm, fragment):
        with pytest.raises(ReMarkupParseError, match='control character'):
            rm.re_markup(fragment, '<b></b>')
        with pytest.raises(ReMarkupParseError):
            rm.un_markup(fragment)

    def test_parser_error_is_chained(self, rm, monkeypatch):
        def broken(*args, **kwargs):
            raise etree.ParserError('Document is empty')

        monkeypatch.setattr(html_utils.html, 'document_fromstring', broken)
        with pytest.raises(ReMarkupParseError) as exc_info:
            rm.re_markup('<b></b>', '<b></b>')
        assert isinstance(exc_info.value.__cause__, etree.ParserError)


class TestCancellation:

    ORIGINAL = ''.join(f'<p class="c{i}"><b>{i}</b></p>' for i in range(5))
    MODIFIED = ''.join(f'<p><b>{i}</b></p>' for i in range(5))

    def test_cancel_event(self, rm):
        event = threading.Event()
        event.set()
        with pytest.raises(ReMarkupCancelledError):
            rm.re_markup(self.ORIGINAL, self.MODIFIED, cancel_event=event)

    def test_unset_cancel_event(self, rm):
        event = threading.Event()
        remarked = rm.re_markup(self.ORIGINAL, self.MODIFIED, cancel_event=event)
        assert remarked == normalized(self.ORIGINAL)

    def test_timeout(self, monkeypatch):
        clock = iter(range(0, 10000, 10))
        monkeypatch.setattr('remarkup.api.time.monotonic', lambda: next(clock))
        rm = ReMarkup(config={'timeout': 25})
        with pytest.raises(ReMarkupCancelledError):
            rm.re_markup(self.ORIGINAL, self.MODIFIED)


class TestProcess:

    def test_single_input(self, rm):
        [output] = rm.process(ReMarkupInput('<b class="c">x</b>', '<b>y</b>', case_id='1'))
        assert isinstance(output, ReMarkupOutput)
        assert output.remarked_html == '<b class="c">y</b>'
        assert output.case_id == '1'

    def test_list_of_dicts_in_order(self, rm):
        outputs = rm.process([
            {'original_html': '<b class="c">x</b>', 'modified_html': '<b>y</b>', 'case_id': 'a'},
            {'original_html': '<i class="d">x</i>', 'modified_html': '<i>z</i>'},
        ])
        assert [o.to_dict() for o in outputs] == [
            {'case_id': 'a', 'remarked_html': '<b class="c">y</b>'},
            {'remarked_html': '<i class="d">z</i>'},
        ]

    def test_failed_item_yields_none(self, rm):
        outputs = rm.process([
            ReMarkupInput(None, '<b>y</b>', case_id='bad'),
            ReMarkupInput('<b class="c">x</b>', '<b>y</b>', case_id='good'),
        ])
        assert outputs[0].remarked_html is None
        assert outputs[1].remarked_html == '<b class="c">y</b>'

    def test_raise_errors(self):
        rm = ReMarkup(config={'raise_errors': True})
        with pytest.raises(ReMarkupTypeError):
            rm.process([ReMarkupInput(None, '<b>y</b>')])

    def test_unsupported_input(self, rm):
        with pytest.raises(ReMarkupTypeError):
            rm.process(['<b></b>'])
        with pytest.raises(ReMarkupTypeError):
            rm.process({'original_html': '<b></b>'})

    def test_input_round_trip(self):
        item = ReMarkupInput.from_dict({'original_html': 'o', 'modified_html': 'm'})
        assert item.to_dict() == {'original_html': 'o', 'modified_html': 'm'}
        output = ReMarkupOutput.from_dict({'remarked_html': 'r', 'case_id': 'x'})
        assert output.case_id == 'x'
