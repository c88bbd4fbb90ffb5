from flask import Blueprint, render_template, request, redirect, url_for, flash, session
from flask_login import login_user, logout_user, current_user
from chronicle import db, limiter
from chronicle.models import User

auth_bp = Blueprint('auth', __name__)


def _safe_next(next_page):
    # Only allow relative redirects: prevents open redirect attacks
    if next_page and next_page.startswith('/') and not next_page.startswith('//'):
        return next_page
    return None


@auth_bp.route('/login', methods=['GET', 'POST'])
@limiter.limit("5 per minute", methods=["POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')

        user = User.query.filter_by(email=email).first()
        if user and user.check_password(password):
            login_user(user, remember='remember' in request.form)
            next_page = _safe_next(request.args.get('next'))
            return redirect(next_page or url_for('main.dashboard'))

        flash('Invalid email or password.', 'danger')

    return render_template('auth/login.html')


@auth_bp.route('/logout')
def logout():
    logout_user()
    session.clear()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))


@auth_bp.route('/signup', methods=['GET', 'POST'])
@limiter.limit("5 per minute", methods=["POST"])
def signup():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        name = request.form.get('name', '').strip()
        email = request.form.get('email', '').strip().lower()
        password = request.form.get('password', '')
        confirm = request.form.get('confirm_password', '')

        if not name:
            flash('Name is required.', 'danger')
            return render_template('auth/signup.html')
        if not email or '@' not in email:
            flash('A valid email is required.', 'danger')
            return render_template('auth/signup.html')
        if len(password) < 8:
            flash('Password must be at least 8 characters.', 'danger')
            return render_template('auth/signup.html')
        if password != confirm:
            flash('Passwords do not match.', 'danger')
            return render_template('auth/signup.html')
        if User.query.filter_by(email=email).first():
            flash('That email is already registered.', 'danger')
            return render_template('auth/signup.html')

        user = User(name=name, email=email, subscription_tier='free')
        user.set_password(password)
        db.session.add(user)
        db.session.commit()

        login_user(user)
        flash(f'Welcome, {name}! Your account has been created.', 'success')
        return redirect(url_for('main.dashboard'))

    return render_template('auth/signup.html')
