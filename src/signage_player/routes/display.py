"""
Kiosk display route for Signage Player.

Renders the cached events as a full-screen page for the Chromium kiosk.
The page rotates through events client-side every DISPLAY_ROTATION_S
seconds and reloads itself periodically to pick up newly fetched data.
The page always renders, even when the cache is stale or empty.
"""

from typing import Any, Optional

from flask import current_app, render_template_string

from . import display_bp
from ..cache import isoformat
from ..services.normalize import parse_start


# HTML template for the kiosk display
EVENTS_TEMPLATE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{{ venue.name if venue and venue.name else 'Upcoming Events' }}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <meta http-equiv="refresh" content="{{ page_refresh_s }}">
    <link rel="stylesheet" href="{{ url_for('static', filename='signage.css') }}">
</head>
<body data-rotation-seconds="{{ config.displayRotationS }}">
    <header class="header">
        <div class="venue">{{ venue.name if venue and venue.name else 'Upcoming Events' }}</div>
        {% if isOffline %}
            <div class="offline-banner">
                Offline &middot; showing saved events
                {% if lastSuccessfulFetch %}from {{ lastSuccessfulFetch | event_time }}{% endif %}
            </div>
        {% endif %}
    </header>

    <main class="events">
        {% for event in events %}
            <section class="event{% if loop.first %} active{% endif %}">
                {% if event.imageUrl %}
                    <img class="event-image" src="{{ event.imageUrl }}" alt="">
                {% endif %}
                <div class="event-body">
                    <h1 class="event-title">{{ event.title or 'Untitled event' }}</h1>
                    <div class="event-time">{{ event.startDatetime | event_time }}</div>
                    {% if event.location %}<div class="event-location">{{ event.location }}</div>{% endif %}
                    {% if event.description %}<p class="event-description">{{ event.description }}</p>{% endif %}
                </div>
            </section>
        {% else %}
            <section class="event active empty">
                <h1 class="event-title">No upcoming events</h1>
                <p class="event-description">Check back soon.</p>
            </section>
        {% endfor %}
    </main>

    <footer class="footer">
        {% if fetchedAt %}Updated {{ fetchedAt | event_time }}{% endif %}
        {% if errorCount %}&middot; {{ errorCount }} failed update{{ 's' if errorCount != 1 }}{% endif %}
    </footer>

    <script>
        (function () {
            var slides = document.querySelectorAll('.event');
            var seconds = parseInt(document.body.dataset.rotationSeconds, 10) || 10;
            var index = 0;
            if (slides.length < 2) { return; }
            setInterval(function () {
                slides[index].classList.remove('active');
                index = (index + 1) % slides.length;
                slides[index].classList.add('active');
            }, seconds * 1000);
        })();
    </script>
</body>
</html>
'''

# Never reload more often than once a minute
MIN_PAGE_REFRESH_S = 60


@display_bp.app_template_filter('event_time')
def event_time(value: Any) -> str:
    """Format an ISO timestamp in the kiosk's local time, e.g. 'Sat 14 Sep, 19:30'."""
    parsed = parse_start(value)
    if parsed is None:
        return value or ''
    return parsed.astimezone().strftime('%a %d %b, %H:%M')


def _page_refresh_seconds(fetch_interval_s: int) -> int:
    """Reload interval for the kiosk page."""
    return max(fetch_interval_s, MIN_PAGE_REFRESH_S)


@display_bp.route('/')
def events_view() -> str:
    """Render the display-limited event list with fetch metadata."""
    config = current_app.config['SIGNAGE_CONFIG']
    store = current_app.config['SNAPSHOT_STORE']

    snapshot = store.get()
    display_events = snapshot.display_events(config.max_events_display)
    venue: Optional[dict] = snapshot.venue

    return render_template_string(
        EVENTS_TEMPLATE,
        events=display_events,
        venue=venue,
        fetchedAt=isoformat(snapshot.fetched_at),
        lastSuccessfulFetch=isoformat(snapshot.last_successful_fetch),
        isOffline=snapshot.is_offline,
        errorCount=snapshot.error_count,
        page_refresh_s=_page_refresh_seconds(config.fetch_interval_s),
        config={
            'displayRotationS': config.display_rotation_s,
            'controllerBaseUrl': config.controller_base_url,
        },
    )
