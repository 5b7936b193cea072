"""Stock guest email templates, used by the seed migration and template reset."""
from reservations.models import NotificationKind

# (schedule_days, send_hour) for the time-triggered kinds
SCHEDULE_DEFAULTS = {
    NotificationKind.PAYMENT_REMINDER: (3, 9),
    NotificationKind.CHECKIN_REMINDER: (1, 9),
    NotificationKind.FEEDBACK_REQUEST: (1, 10),
}

_STYLE = """
        body { font-family: Arial, 'Helvetica Neue', sans-serif; line-height: 1.7; color: #333; margin: 0; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #262A33; color: #fff; padding: 24px; text-align: center; border-radius: 8px 8px 0 0; }
        .content { background: #f9f9f9; padding: 24px; border-radius: 0 0 8px 8px; }
        .highlight { background: #fff3cd; border-left: 4px solid #ffc107; padding: 12px 16px; margin: 16px 0; }
        .footer { color: #777; font-size: 13px; margin-top: 24px; border-top: 1px solid #ddd; padding-top: 12px; }
"""

_BOOKING_DETAILS = """
            <h2>Booking details</h2>
            <p><strong>Booking number:</strong> {{bookingId}}</p>
            <p><strong>Check-in:</strong> {{checkInDate}}</p>
            <p><strong>Check-out:</strong> {{checkOutDate}}</p>
            <p><strong>Room:</strong> {{roomType}} ({{nights}} night(s))</p>
            {{#if addonsList}}
            <p><strong>Extras:</strong> {{addonsList}}</p>
            <p><strong>Extras total:</strong> NT$ {{addonsTotal}}</p>
            {{/if}}
            <p><strong>Total:</strong> NT$ {{totalAmount}}</p>
            <p><strong>Amount due:</strong> NT$ {{finalAmount}}</p>"""

_BANK_DETAILS = """
            {{#if bankInfo}}
            <h2>Transfer details</h2>
            <p><strong>Bank:</strong> {{bankName}}{{bankBranchDisplay}}</p>
            <p><strong>Account:</strong> {{bankAccount}}</p>
            {{#if accountName}}<p><strong>Account name:</strong> {{accountName}}</p>{{/if}}
            <p>Please quote the last five digits of your booking number (<strong>{{bookingIdLast5}}</strong>) with the transfer.</p>
            {{else}}
            <p>We will send transfer details separately. Please contact us if you have not received them.</p>
            {{/if}}"""

_DEPOSIT_NOTE = """
            {{#if isDeposit}}
            <h2>Balance</h2>
            <p>The remaining balance of <strong>NT$ {{remainingAmount}}</strong> is payable on arrival.</p>
            {{/if}}"""


def _document(heading, body):
    return (
        '<!DOCTYPE html>\n<html>\n<head>\n    <meta charset="UTF-8">\n'
        f'    <style>{_STYLE}    </style>\n</head>\n<body>\n'
        '    <div class="container">\n'
        f'        <div class="header"><h1>{heading}</h1></div>\n'
        f'        <div class="content">{body}\n'
        '            {{hotelInfoFooter}}\n'
        '        </div>\n    </div>\n</body>\n</html>'
    )


DEFAULT_TEMPLATES = {
    NotificationKind.BOOKING_CONFIRMATION: {
        'name': 'Booking confirmation',
        'subject': 'Booking received: {{bookingId}}',
        'content': _document('Thank you for your booking', """
            <p>Dear {{guestName}},</p>
            <p>We have received your reservation.</p>""" + _BOOKING_DETAILS + """
            {{#if isTransfer}}
            <div class="highlight">
                Your room is held for {{daysReserved}} day(s). Please complete the transfer by
                <strong>{{paymentDeadline}}</strong> or the booking will be cancelled automatically.
            </div>""" + _BANK_DETAILS + """
            {{else}}
            <p>Payment method: {{paymentMethod}}.</p>
            {{/if}}""" + _DEPOSIT_NOTE),
    },
    NotificationKind.PAYMENT_REMINDER: {
        'name': 'Payment deadline reminder',
        'subject': 'Reminder: payment for {{bookingId}} is due {{paymentDeadline}}',
        'content': _document('Payment deadline reminder', """
            <p>Dear {{guestName}},</p>
            <div class="highlight">
                Your booking is held for {{daysReserved}} day(s). Please complete the transfer by
                <strong>{{paymentDeadline}}</strong>, otherwise it will be cancelled automatically.
            </div>""" + _BOOKING_DETAILS + _BANK_DETAILS + _DEPOSIT_NOTE),
    },
    NotificationKind.CHECKIN_REMINDER: {
        'name': 'Check-in reminder',
        'subject': 'See you soon: check-in on {{checkInDate}}',
        'content': _document('We look forward to welcoming you', """
            <p>Dear {{guestName}},</p>
            <p>This is a reminder that your stay begins on <strong>{{checkInDate}}</strong>.</p>""" + _BOOKING_DETAILS + """
            {{#if isDeposit}}
            <p>Please have the remaining balance of NT$ {{remainingAmount}} ready at check-in.</p>
            {{/if}}
            <p>Check-in is from 15:00. Let us know if you expect to arrive late.</p>"""),
    },
    NotificationKind.FEEDBACK_REQUEST: {
        'name': 'Feedback request',
        'subject': 'How was your stay, {{guestName}}?',
        'content': _document('Thank you for staying with us', """
            <p>Dear {{guestName}},</p>
            <p>Thank you for staying with us from {{checkInDate}} to {{checkOutDate}}.
               We would love to hear about your experience.</p>
            <p>Simply reply to this email with your comments.</p>"""),
    },
    NotificationKind.PAYMENT_COMPLETED: {
        'name': 'Payment received',
        'subject': 'Payment received for {{bookingId}}',
        'content': _document('Payment received', """
            <p>Dear {{guestName}},</p>
            <p>We have received your payment of <strong>NT$ {{finalAmount}}</strong>. Your booking is confirmed.</p>"""
            + _BOOKING_DETAILS + _DEPOSIT_NOTE),
    },
    NotificationKind.CANCEL_NOTIFICATION: {
        'name': 'Cancellation notice',
        'subject': 'Booking {{bookingId}} has been cancelled',
        'content': _document('Booking cancelled', """
            <p>Dear {{guestName}},</p>
            <p>Your booking <strong>{{bookingId}}</strong> ({{checkInDate}} to {{checkOutDate}}) has been cancelled
               because payment was not received by {{paymentDeadline}}.</p>
            <p>If you have already paid or would like to book again, please contact us.</p>"""),
    },
}


def default_fields(key):
    """Model field values for a stock template, including its schedule."""
    template = DEFAULT_TEMPLATES[key]
    schedule_days, send_hour = SCHEDULE_DEFAULTS.get(key, (None, None))
    return {
        'name': template['name'],
        'subject': template['subject'],
        'content': template['content'],
        'is_enabled': True,
        'schedule_days': schedule_days,
        'send_hour': send_hour,
    }
