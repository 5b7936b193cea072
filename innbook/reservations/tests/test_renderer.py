"""Tests for guest email template rendering.

Covers:
- Determinism (same inputs, byte-identical output)
- Conditional blocks (else branch, nesting, unknown names, stray/unclosed tokens)
- Placeholder substitution (escaping, no leakage for context keys)
- Structural repair of bare fragments
- Footer injection (declared placeholder vs. before </body>, never both)
"""
from datetime import date, datetime, timezone as dt_timezone
from types import SimpleNamespace

from django.test import SimpleTestCase

from reservations.models import Reservation
from reservations.notifications.context import (
    ProviderContext, build_conditions, build_context, build_footer,
)
from reservations.notifications.defaults import DEFAULT_TEMPLATES
from reservations.notifications.renderer import (
    is_truthy, render, repair_structure, resolve_conditionals, sweep_stray_tokens,
)

FULL_DOC = (
    '<!DOCTYPE html><html><head><style>.x{}</style></head><body>'
    '<div class="container"><div class="header">H</div><div class="content">INNER</div></div>'
    '</body></html>'
)


def _doc(inner):
    return FULL_DOC.replace('INNER', inner)


def _template(content, subject='Subject'):
    return SimpleNamespace(subject=subject, content=content)


def _reservation(**overrides):
    fields = dict(
        booking_id='BK87654321',
        check_in_date=date(2024, 3, 10),
        check_out_date=date(2024, 3, 12),
        room_type='Twin',
        guest_name='Ann Lee',
        guest_phone='0912000000',
        guest_email='ann@example.com',
        price_per_night=2500,
        nights=2,
        total_amount=5600,
        discount_amount=100,
        final_amount=1650,
        addons=[{'name': 'breakfast', 'price': 300, 'quantity': 2}],
        addons_total=600,
        payment_amount='deposit',
        payment_method='transfer',
        created_at=datetime(2024, 3, 1, 2, 0, tzinfo=dt_timezone.utc),
    )
    fields.update(overrides)
    return Reservation(**fields)


def _provider(**overrides):
    fields = dict(
        bank_name='First Bank',
        bank_branch='Harbour Branch',
        bank_account='123-456',
        account_name='Harbour Inn Ltd',
        hotel_name='Harbour Inn',
        hotel_phone='02-1234',
        addon_names={'breakfast': 'Breakfast'},
        time_zone='Asia/Taipei',
    )
    fields.update(overrides)
    return ProviderContext(**fields)


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

class RenderDeterminismTest(SimpleTestCase):

    def test_identical_inputs_render_identically(self):
        provider = _provider()
        context = build_context(_reservation(), provider)
        template = _template(DEFAULT_TEMPLATES['payment_reminder']['content'],
                             DEFAULT_TEMPLATES['payment_reminder']['subject'])
        first = render(template, context, footer=build_footer(provider))
        second = render(template, dict(context), footer=build_footer(provider))
        self.assertEqual(first, second)

    def test_repair_is_stable(self):
        repaired = repair_structure('<p>Hello {{guestName}}</p>')
        self.assertEqual(repair_structure(repaired), repaired)


# ---------------------------------------------------------------------------
# Conditionals
# ---------------------------------------------------------------------------

class ConditionalTest(SimpleTestCase):

    def test_bank_info_missing_takes_else_branch(self):
        context = build_context(_reservation(), _provider(bank_account=''))
        rendered = render(_template(_doc('{{#if bankInfo}}X{{else}}Y{{/if}}')), context)
        self.assertIn('<div class="content">Y</div>', rendered.body)
        for token in ('{{#if', '{{/if}}', '{{else}}'):
            self.assertNotIn(token, rendered.body)

    def test_bank_info_present_takes_then_branch(self):
        context = build_context(_reservation(), _provider())
        rendered = render(_template(_doc('{{#if bankInfo}}X{{else}}Y{{/if}}')), context)
        self.assertIn('<div class="content">X</div>', rendered.body)

    def test_nested_blocks(self):
        text = '{{#if a}}A{{#if b}}B{{else}}C{{/if}}{{/if}}!'
        self.assertEqual(resolve_conditionals(text, {'a': True, 'b': False}), 'AC!')
        self.assertEqual(resolve_conditionals(text, {'a': True, 'b': 'yes'}), 'AB!')
        self.assertEqual(resolve_conditionals(text, {'a': 0, 'b': True}), '!')

    def test_else_inside_nested_false_block(self):
        text = '{{#if a}}{{#if b}}B{{/if}}{{else}}E{{/if}}'
        self.assertEqual(resolve_conditionals(text, {}), 'E')

    def test_unknown_name_is_falsy(self):
        self.assertEqual(resolve_conditionals('{{#if nope}}X{{else}}Y{{/if}}', {}), 'Y')

    def test_whitespace_inside_tokens(self):
        self.assertEqual(resolve_conditionals('{{ #if a }}X{{ else }}Y{{ /if }}', {'a': 1}), 'X')

    def test_stray_tokens_are_removed(self):
        text = 'a{{/if}}b{{else}}c'
        cleaned = sweep_stray_tokens(resolve_conditionals(text, {}))
        self.assertEqual(cleaned, 'abc')

    def test_unclosed_block_is_flattened(self):
        cleaned = sweep_stray_tokens(resolve_conditionals('x{{#if a}}inner', {'a': False}))
        self.assertEqual(cleaned, 'xinner')

    def test_malformed_tags_never_reach_guest(self):
        for inner, expected in (
            ('{{#if bank-info}}X{{/if}}', 'X'),
            ('{{#if}}X{{/if}}', 'X'),
            ('{{#IF bankInfo}}X{{/IF}}', ''),
            ('{{#if a.b}}X{{else}}Y{{/if}}', 'XY'),
            ('{{ ELSE }}Z', 'Z'),
        ):
            with self.subTest(inner=inner):
                rendered = render(_template(_doc(inner)), {})
                self.assertIn(f'<div class="content">{expected}</div>', rendered.body)
                self.assertNotIn('{{', rendered.body)

    def test_uppercase_block_is_resolved(self):
        self.assertEqual(resolve_conditionals('{{#IF a}}X{{ELSE}}Y{{/IF}}', {'a': 1}), 'X')

    def test_zero_amounts_are_falsy(self):
        text = _doc('{{#if discountAmount}}DISCOUNT{{/if}}{{#if remainingAmount}}BALANCE{{/if}}')
        settled = _reservation(discount_amount=0, total_amount=5000, final_amount=5000)
        context = build_context(settled, _provider())
        self.assertEqual(context['discountAmount'], '0')

        rendered = render(_template(text), context, conditions=build_conditions(settled, context))
        self.assertNotIn('DISCOUNT', rendered.body)
        self.assertNotIn('BALANCE', rendered.body)

        owing = _reservation()
        context = build_context(owing, _provider())
        rendered = render(_template(text), context, conditions=build_conditions(owing, context))
        self.assertIn('DISCOUNTBALANCE', rendered.body)

    def test_spliced_tokens_are_swept(self):
        # Removing the inner token joins the outer braces into a new token.
        self.assertEqual(sweep_stray_tokens('{{{{/if}}#if x}}done'), 'done')

    def test_truthiness(self):
        self.assertTrue(is_truthy('x'))
        self.assertTrue(is_truthy(3))
        self.assertTrue(is_truthy({'k': 1}))
        self.assertFalse(is_truthy(''))
        self.assertFalse(is_truthy(0))
        self.assertFalse(is_truthy(None))
        self.assertFalse(is_truthy({}))
        self.assertFalse(is_truthy(False))


# ---------------------------------------------------------------------------
# Substitution
# ---------------------------------------------------------------------------

class SubstitutionTest(SimpleTestCase):

    def test_no_placeholder_leakage(self):
        context = build_context(_reservation(), _provider())
        inner = ' '.join('{{%s}}' % key for key in context)
        subject = ' '.join('{{%s}}' % key for key in context)
        rendered = render(_template(_doc(inner), subject), context)
        for key in context:
            self.assertNotIn('{{%s}}' % key, rendered.body)
            self.assertNotIn('{{%s}}' % key, rendered.subject)

    def test_body_values_are_escaped(self):
        context = build_context(_reservation(guest_name='<b>Ann & Co</b>'), _provider())
        rendered = render(_template(_doc('{{guestName}}'), 'Hi {{guestName}}'), context)
        self.assertIn('&lt;b&gt;Ann &amp; Co&lt;/b&gt;', rendered.body)
        self.assertEqual(rendered.subject, 'Hi <b>Ann & Co</b>')

    def test_guest_data_cannot_inject_blocks(self):
        context = build_context(_reservation(guest_name='{{/if}}'), _provider(bank_account=''))
        rendered = render(_template(_doc('{{#if bankInfo}}{{guestName}}{{else}}none{{/if}}')), context)
        self.assertIn('<div class="content">none</div>', rendered.body)

    def test_derived_fields(self):
        context = build_context(_reservation(), _provider())
        self.assertEqual(context['bookingIdLast5'], '54321')
        self.assertEqual(context['checkInDate'], '2024/03/10')
        self.assertEqual(context['nights'], 2)
        self.assertEqual(context['remainingAmount'], '3,850')
        self.assertEqual(context['addonsList'], 'Breakfast x2 (NT$ 600)')
        self.assertEqual(context['bankBranchDisplay'], ' - Harbour Branch')
        # 2024-03-01 02:00 UTC is 10:00 in Taipei; deadline three days later
        self.assertEqual(context['bookingDateTime'], '2024/03/01 10:00')
        self.assertEqual(context['paymentDeadline'], '2024/03/04')
        self.assertTrue(context['isDeposit'])
        self.assertTrue(context['isTransfer'])

    def test_subject_values_are_not_rescanned(self):
        context = {'guestName': '{{guestEmail}} {{else}}', 'guestEmail': 'ann@example.com'}
        rendered = render(_template(_doc('x'), 'Hi {{guestName}}'), context)
        self.assertEqual(rendered.subject, 'Hi {{guestEmail}} {{else}}')

    def test_unknown_placeholder_is_left_alone(self):
        rendered = render(_template(_doc('{{mystery}}')), {})
        self.assertIn('{{mystery}}', rendered.body)


# ---------------------------------------------------------------------------
# Structural repair
# ---------------------------------------------------------------------------

class StructuralRepairTest(SimpleTestCase):

    def test_fragment_is_wrapped(self):
        rendered = render(_template('<p>Hello {{guestName}}</p>'), {'guestName': 'Ann', 'hotelName': 'Inn'})
        self.assertTrue(rendered.body.startswith('<!DOCTYPE html>'))
        for region in ('container', 'header', 'content'):
            self.assertIn(f'class="{region}"', rendered.body)
        self.assertIn('<p>Hello Ann</p>', rendered.body)
        self.assertIn('<h1>Inn</h1>', rendered.body)

    def test_repair_keeps_placeholders_and_blocks(self):
        repaired = repair_structure('<body><p>{{#if a}}{{guestName}}{{/if}}</p></body>')
        self.assertIn('{{#if a}}{{guestName}}{{/if}}', repaired)

    def test_existing_styles_move_to_head(self):
        repaired = repair_structure('<style>.mine{color:red}</style><p>x</p>')
        head, body = repaired.split('<body>')
        self.assertIn('.mine{color:red}', head)
        self.assertNotIn('.mine', body)

    def test_head_content_is_kept(self):
        repaired = repair_structure(
            '<html><head><meta charset="utf-8"><title>{{bookingId}}</title></head>'
            '<body><p>x</p></body></html>'
        )
        head, body = repaired.split('<body>')
        self.assertIn('<title>{{bookingId}}</title>', head)
        self.assertEqual(head.lower().count('<meta charset'), 1)
        self.assertNotIn('<title>', body)
        self.assertIn('<p>x</p>', body)

    def test_complete_document_untouched(self):
        doc = _doc('{{guestName}}')
        self.assertEqual(repair_structure(doc), doc)

    def test_stock_templates_need_no_repair(self):
        for key, template in DEFAULT_TEMPLATES.items():
            with self.subTest(key=key):
                self.assertEqual(repair_structure(template['content']), template['content'])


# ---------------------------------------------------------------------------
# Footer
# ---------------------------------------------------------------------------

class FooterTest(SimpleTestCase):
    FOOTER = '<div class="footer">Inn</div>'

    def test_declared_placeholder_receives_footer(self):
        rendered = render(_template(_doc('A{{hotelInfoFooter}}B')), {}, footer=self.FOOTER)
        self.assertIn('A' + self.FOOTER + 'B', rendered.body)
        self.assertEqual(rendered.body.count(self.FOOTER), 1)

    def test_footer_inserted_before_body_close(self):
        rendered = render(_template(_doc('A')), {}, footer=self.FOOTER)
        self.assertIn(self.FOOTER + '\n</body>', rendered.body)
        self.assertEqual(rendered.body.count(self.FOOTER), 1)

    def test_empty_footer_clears_placeholder(self):
        rendered = render(_template(_doc('A{{hotelInfoFooter}}B')), {}, footer='')
        self.assertIn('AB', rendered.body)

    def test_build_footer_escapes_and_skips_blanks(self):
        footer = build_footer(_provider(hotel_name='A&B Inn', hotel_phone='', hotel_address='', hotel_email=''))
        self.assertEqual(footer, '<div class="footer"><p><strong>A&amp;B Inn</strong></p></div>')
        self.assertEqual(
            build_footer(_provider(hotel_name='', hotel_phone='', hotel_address='', hotel_email='')),
            '',
        )
