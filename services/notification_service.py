# services/notification_service.py

from flask import current_app
from flask_mail import Message
from threading import Thread
from smtplib import SMTPException

from app.errors import UpstreamError
from db.extensions import mail


def send_async_email(app, msg):
    """Send email asynchronously in background thread"""
    with app.app_context():
        try:
            mail.send(msg)
            app.logger.info(f"✅ Email sent in background to {msg.recipients}")
        except (SMTPException, OSError) as e:
            app.logger.error(f"❌ Failed to send email asynchronously: {str(e)}")


def _wrap_html(title, body_html):
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="text-align: center; margin-bottom: 30px;">
                <h1 style="color: #16a34a; margin: 0;">🏟️ QuickCourt</h1>
                <p style="color: #666; margin: 5px 0;">Book your game in seconds</p>
            </div>
            <h2 style="color: #16a34a;">{title}</h2>
            {body_html}
            <hr style="margin: 30px 0; border: none; height: 1px; background-color: #e2e8f0;">
            <p style="font-size: 12px; color: #64748b; text-align: center; margin: 0;">
                This is an automated email from QuickCourt. Please do not reply.
            </p>
        </div>
    </body>
    </html>
    """


class NotificationService:

    @staticmethod
    def send_email(subject, recipients, body, html=None, critical=False):
        """
        Best-effort by default: failures are logged and swallowed, and the
        message goes out on a background thread when MAIL_ASYNC is on.
        With critical=True the send is synchronous and failures raise
        UpstreamError.
        """
        msg = Message(
            subject=subject,
            recipients=recipients,
            sender=current_app.config['MAIL_DEFAULT_SENDER']
        )
        msg.body = body
        if html:
            msg.html = html

        if critical:
            try:
                mail.send(msg)
                current_app.logger.info(f"✅ Mail sent to {recipients}: {subject}")
                return True
            except (SMTPException, OSError) as e:
                current_app.logger.error(f"❌ Failed to send email to {recipients}: {e}")
                raise UpstreamError('Failed to send email. Please try again later.')

        if current_app.config.get('MAIL_ASYNC', True):
            Thread(
                target=send_async_email,
                args=(current_app._get_current_object(), msg),
                daemon=True
            ).start()
            return True

        try:
            mail.send(msg)
            current_app.logger.info(f"✅ Mail sent to {recipients}: {subject}")
            return True
        except (SMTPException, OSError) as e:
            current_app.logger.error(f"❌ Failed to send email to {recipients}: {e}")
            return False

    @staticmethod
    def send_otp_email(email, otp, expiry_minutes):
        subject = '🔐 Your QuickCourt verification code'
        html = _wrap_html('Verify your email', f"""
            <p>Use the code below to verify your email address:</p>
            <div style="background: linear-gradient(135deg, #22c55e 0%, #15803d 100%); padding: 25px; border-radius: 10px; text-align: center; margin: 30px 0;">
                <h1 style="color: white; font-size: 42px; margin: 0; letter-spacing: 8px;">{otp}</h1>
            </div>
            <p>This code is valid for <strong>{expiry_minutes} minutes</strong>. Never share it with anyone.</p>
        """)
        body = f"""
QuickCourt - Verify your email

Your verification code: {otp}

This code is valid for {expiry_minutes} minutes. Never share it with anyone.
If you didn't request this, please ignore this email.
"""
        return NotificationService.send_email(subject, [email], body, html=html, critical=True)

    @staticmethod
    def send_welcome_email(user):
        subject = f"Welcome to QuickCourt, {user.display_name}!"
        html = _wrap_html('Welcome aboard 🎉', f"""
            <p>Hello <strong>{user.full_name}</strong>,</p>
            <p>Your account is ready. Find a ground near you and book your next game.</p>
        """)
        body = f"Hello {user.full_name},\n\nYour QuickCourt account is ready.\n\nQuickCourt Team"
        return NotificationService.send_email(subject, [user.email], body, html=html)

    @staticmethod
    def send_booking_confirmation(booking):
        user = booking.user
        ground = booking.ground
        if not user or not user.email:
            current_app.logger.warning(f"⚠️  No email for booking {booking.booking_id}")
            return False

        courts = ', '.join(booking.selected_courts)
        subject = f"Booking Confirmed - {booking.booking_id}"
        html = _wrap_html('✅ Booking confirmed', f"""
            <p>Hello <strong>{user.full_name}</strong>,</p>
            <table style="width:100%; border-collapse:collapse; margin-bottom:15px;">
                <tr><th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Ground</th>
                    <td style="border:1px solid #ddd; padding:8px;">{ground.name if ground else booking.ground_id}</td></tr>
                <tr><th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Date</th>
                    <td style="border:1px solid #ddd; padding:8px;">{booking.date.isoformat()}</td></tr>
                <tr><th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Time</th>
                    <td style="border:1px solid #ddd; padding:8px;">{booking.start_time} - {booking.end_time}</td></tr>
                <tr><th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Courts</th>
                    <td style="border:1px solid #ddd; padding:8px;">{courts}</td></tr>
                <tr><th style="border:1px solid #ddd; padding:8px; background:#f3f3f3;">Amount Paid</th>
                    <td style="border:1px solid #ddd; padding:8px; text-align:right;">{booking.currency} {booking.total_amount:.2f}</td></tr>
            </table>
        """)
        body = (
            f"Hello {user.full_name},\n\n"
            f"Your booking {booking.booking_id} is confirmed.\n"
            f"Ground: {ground.name if ground else booking.ground_id}\n"
            f"Date: {booking.date.isoformat()} {booking.start_time}-{booking.end_time}\n"
            f"Courts: {courts}\n"
            f"Amount: {booking.currency} {booking.total_amount:.2f}\n\n"
            "QuickCourt Team"
        )
        return NotificationService.send_email(subject, [user.email], body, html=html)

    @staticmethod
    def send_booking_cancellation(booking, refund):
        user = booking.user
        if not user or not user.email:
            return False

        subject = f"Booking Cancelled - {booking.booking_id}"
        refund_line = (
            f"A refund of {booking.currency} {refund:.2f} will be processed to your original payment method."
            if refund > 0 else "No refund is applicable for this cancellation."
        )
        html = _wrap_html('Booking cancelled', f"""
            <p>Hello <strong>{user.full_name}</strong>,</p>
            <p>Your booking <strong>{booking.booking_id}</strong> on {booking.date.isoformat()}
               ({booking.start_time} - {booking.end_time}) has been cancelled.</p>
            <p>{refund_line}</p>
        """)
        body = (
            f"Hello {user.full_name},\n\n"
            f"Your booking {booking.booking_id} on {booking.date.isoformat()} "
            f"({booking.start_time}-{booking.end_time}) has been cancelled.\n"
            f"{refund_line}\n\nQuickCourt Team"
        )
        return NotificationService.send_email(subject, [user.email], body, html=html)

    @staticmethod
    def send_role_change(user, old_role, new_role):
        subject = 'Your QuickCourt role has been updated'
        body = (
            f"Hello {user.full_name},\n\n"
            f"An administrator changed your role from {old_role} to {new_role}.\n\n"
            "QuickCourt Team"
        )
        html = _wrap_html('Role updated', f"""
            <p>Hello <strong>{user.full_name}</strong>,</p>
            <p>An administrator changed your role from <strong>{old_role}</strong> to <strong>{new_role}</strong>.</p>
        """)
        return NotificationService.send_email(subject, [user.email], body, html=html)

    @staticmethod
    def send_status_change(user, old_status, new_status, reason=None):
        subject = 'Your QuickCourt account status has changed'
        reason_line = f"Reason: {reason}\n" if reason else ''
        body = (
            f"Hello {user.full_name},\n\n"
            f"Your account status changed from {old_status} to {new_status}.\n"
            f"{reason_line}\nQuickCourt Team"
        )
        html = _wrap_html('Account status updated', f"""
            <p>Hello <strong>{user.full_name}</strong>,</p>
            <p>Your account status changed from <strong>{old_status}</strong> to <strong>{new_status}</strong>.</p>
            {f'<p>Reason: {reason}</p>' if reason else ''}
        """)
        return NotificationService.send_email(subject, [user.email], body, html=html)
