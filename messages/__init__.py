"""
Message template system for StickRPG.

Jinja2 templates for every narrated log line and for the status summary
the rendering shell displays. Templates only read state; they never
change it.
"""

from pathlib import Path
from typing import Dict, Any, Optional
import logging

from jinja2 import Environment, FileSystemLoader, DictLoader, TemplateNotFound

logger = logging.getLogger(__name__)

NEED_LABELS = (
    ('energy', 'Energy'),
    ('hunger', 'Hunger'),
    ('hygiene', 'Hygiene'),
    ('stress', 'Stress'),
    ('health', 'Health'),
    ('morale', 'Morale'),
)


class MessageEngine:
    """
    Jinja2-based message template engine.

    Renders from the inline templates below unless a template directory
    of .j2 files is supplied.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = template_dir

        if self.template_dir is not None and Path(self.template_dir).exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            loader = DictLoader(DEFAULT_TEMPLATES)

        self.env = Environment(loader=loader, trim_blocks=True, lstrip_blocks=True)

        # Register custom filters
        self.env.filters['currency'] = self._format_currency
        self.env.filters['percent'] = self._format_percent
        self.env.filters['clock'] = self._format_clock

    def _format_currency(self, value) -> str:
        """Format number as currency."""
        try:
            return f"${int(float(value)):,}"
        except (ValueError, TypeError):
            return f"${value}"

    def _format_percent(self, value) -> str:
        """Format a 0-1 ratio as a whole percentage."""
        try:
            return f"{round(float(value) * 100)}%"
        except (ValueError, TypeError):
            return f"{value}%"

    def _format_clock(self, time_state) -> str:
        """Day/hour/minute as 'Day 3 • 08:05'."""
        return f"Day {time_state.day} • {time_state.hour:02d}:{time_state.minute:02d}"

    def load_template(self, template_name: str) -> Optional[Any]:
        """Load a Jinja2 template by name."""
        try:
            return self.env.get_template(template_name)
        except TemplateNotFound:
            try:
                return self.env.get_template(f"{template_name}.j2")
            except TemplateNotFound:
                return None

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        template = self.load_template(template_name)
        if template:
            return template.render(**context)

        logger.warning(f"Message template '{template_name}' not found")
        return f"[Template '{template_name}' not found]"


# =============================================================================
# INLINE TEMPLATES
# =============================================================================

DEFAULT_TEMPLATES = {
    # Session
    'log/new_game.txt': 'A new grind begins.',

    # Activities
    'log/unknown_activity.txt': 'Unknown activity: {{ activity_id }}',
    'log/minigame_started.txt': 'Started {{ name }}.',
    'log/requirements_unmet.txt': 'Requirements not met for {{ name }}: {{ unmet | join(", ") }}.',
    'log/activity_completed.txt': '{{ name }} completed.',

    # Time
    'log/critical_need.txt': 'Critical {{ need }} threshold reached.',
    'log/day_begins.txt': 'Day {{ day }} begins.',
    'log/injury_healed.txt': 'Your injury heals and energy recovery returns to normal.',

    # Boxing
    'log/boxing_win.txt': 'Boxing win! Earned {{ money | currency }} and {{ reputation }} rep.',
    'log/boxing_loss.txt': 'Boxing loss. You still gain some combat experience.',
    'log/boxing_injury.txt': 'You picked up an injury. Energy recovery is slower today.',

    # Blackjack
    'log/blackjack_win.txt': 'Blackjack win! You gain {{ bet | currency }}.',
    'log/blackjack_loss.txt': 'Blackjack loss. You lose {{ bet | currency }}.',
    'log/blackjack_push.txt': 'Blackjack push. Your bet is returned.',

    # Status summary for the shell
    'status/summary.txt': '''
{{ time | clock }}
Location: {{ location.name }} - {{ location.description }}
Money: {{ player.money | currency }} | Reputation: {{ player.reputation }}
{% for label, value in needs %}
{{ label }}: {{ value }}
{% endfor %}
{% if injured %}
Injured until day {{ injury_until_day }}: energy recovery is halved.
{% endif %}
''',
}


# Global message engine instance
_engine: Optional[MessageEngine] = None


def get_message_engine() -> MessageEngine:
    """Get or create the global message engine."""
    global _engine
    if _engine is None:
        _engine = MessageEngine()
    return _engine


def render_message(template_name: str, /, **context) -> str:
    """
    Render a single log line, e.g. render_message('day_begins', day=2).

    The template name is positional-only so templates may use a `name`
    variable of their own.
    """
    return get_message_engine().render(f"log/{template_name}.txt", context)


def render_status(state) -> str:
    """Render the read-only status summary for a GameState snapshot."""
    needs = state.player.needs
    context = {
        'time': state.time,
        'location': state.location,
        'player': state.player,
        'needs': [(label, getattr(needs, key)) for key, label in NEED_LABELS],
        'injured': state.is_injured,
        'injury_until_day': state.player.status_effects.injury_until_day,
    }
    return get_message_engine().render('status/summary.txt', context).strip()
