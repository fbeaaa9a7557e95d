"""
Email Notifications

FLOW OVERVIEW
- send_invitation_email(invitation, inviter_name)
  • "You're invited to join the team as <role>" with the accept link and expiry date.
- send_training_reminder(email, course_title, due_date, is_overdue, reminder_type)
  • Overdue, upcoming or recurring-training reminder.

Both return True when Flask-Mail accepted the message and False when sending failed.
"""

from datetime import datetime
from html import escape

from flask import current_app
from flask_mail import Mail, Message

from .prom_metrics import observe_email

mail = Mail()

REMINDER_UPCOMING = 'upcoming'
REMINDER_OVERDUE = 'overdue'
REMINDER_FREQUENCY = 'frequency'

FOOTER = """
          <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
          <p style="color: #666; font-size: 12px;">
            This is an automated reminder from your training management system.
          </p>"""


def format_date(value):
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if value is None:
        return 'Not set'
    return value.strftime('%B %d, %Y')


def invitation_url(token):
    base = current_app.config.get('FRONTEND_URL', 'http://localhost:5173').rstrip('/')
    return f"{base}/accept-invitation?token={token}"


def _send(kind, msg):
    try:
        mail.send(msg)
        current_app.logger.info(f"Sent {kind} email to {', '.join(msg.recipients)}")
        observe_email(kind, True)
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to send {kind} email: {e}")
        observe_email(kind, False)
        return False


def send_invitation_email(invitation, inviter_name):
    """Send the invitation email with the accept link"""
    url = invitation_url(invitation.invitation_token)
    role = escape(invitation.role)

    msg = Message(
        f"You're invited to join the team as {invitation.role}",
        recipients=[invitation.email],
        sender=current_app.config.get('MAIL_DEFAULT_SENDER')
    )
    msg.html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Welcome to the Team!</h2>
        <p>Hi there,</p>
        <p>{escape(inviter_name or 'An administrator')} has invited you to join the team as a <strong>{role}</strong>.</p>
        <p>Click the button below to accept your invitation and get started:</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{url}"
             style="background-color: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block;">
            Accept Invitation
          </a>
        </div>
        <p>This invitation will expire on {format_date(invitation.invitation_expires_at)}.</p>
        <p>If you have any questions, please contact your administrator.</p>
        <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
        <p style="color: #666; font-size: 12px;">
          If you're having trouble clicking the button, copy and paste this URL into your browser:<br>
          <a href="{url}">{url}</a>
        </p>
      </div>
    """
    return _send('invitation', msg)


def reminder_subject(course_title, is_overdue, reminder_type):
    if is_overdue:
        return f"URGENT: Overdue Training - {course_title}"
    if reminder_type == REMINDER_UPCOMING:
        return f"Training Reminder - {course_title}"
    return f"Training Due - {course_title}"


def reminder_html(course_title, due_date, is_overdue, reminder_type):
    title = escape(course_title)
    due = format_date(due_date)
    if is_overdue:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #dc2626;">⚠️ Training Overdue</h2>
          <p>Hi there,</p>
          <p><strong>Your training for "{title}" is now overdue.</strong></p>
          <p>Due Date: {due}</p>
          <p>Please complete this training as soon as possible to maintain compliance.</p>
          <div style="background-color: #fef2f2; border: 1px solid #fecaca; padding: 16px; border-radius: 8px; margin: 20px 0;">
            <p style="margin: 0; color: #dc2626;"><strong>Action Required:</strong> Complete your training immediately.</p>
          </div>
          <p>If you have any questions, please contact your administrator.</p>{FOOTER}
        </div>
        """
    if reminder_type == REMINDER_UPCOMING:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563eb;">📚 Training Reminder</h2>
          <p>Hi there,</p>
          <p>This is a friendly reminder that your training for <strong>"{title}"</strong> is due soon.</p>
          <p>Due Date: {due}</p>
          <p>Please complete this training before the due date to maintain compliance.</p>
          <div style="background-color: #eff6ff; border: 1px solid #bfdbfe; padding: 16px; border-radius: 8px; margin: 20px 0;">
            <p style="margin: 0; color: #2563eb;"><strong>Next Steps:</strong> Log in to your training portal and complete the course.</p>
          </div>
          <p>If you have any questions, please contact your administrator.</p>{FOOTER}
        </div>
        """
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #059669;">🔄 Training Due</h2>
          <p>Hi there,</p>
          <p>It's time to complete your recurring training for <strong>"{title}"</strong>.</p>
          <p>Due Date: {due}</p>
          <p>This training is required to maintain your certification and compliance.</p>
          <div style="background-color: #f0fdf4; border: 1px solid #bbf7d0; padding: 16px; border-radius: 8px; margin: 20px 0;">
            <p style="margin: 0; color: #059669;"><strong>Action Required:</strong> Complete your training by the due date.</p>
          </div>
          <p>If you have any questions, please contact your administrator.</p>{FOOTER}
        </div>
        """


def send_training_reminder(email, course_title, due_date, is_overdue=False, reminder_type=REMINDER_UPCOMING):
    """Send a training reminder; raises ValueError when email or course title is missing"""
    if not email or not course_title:
        raise ValueError('Missing required fields')

    msg = Message(
        reminder_subject(course_title, is_overdue, reminder_type),
        recipients=[email],
        sender=current_app.config.get('MAIL_DEFAULT_SENDER')
    )
    msg.html = reminder_html(course_title, due_date, is_overdue, reminder_type)
    return _send('training_reminder', msg)
