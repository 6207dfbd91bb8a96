# groupbot

Building blocks for a group chat bot. None of the modules is tied to a chat
protocol. Your bot framework receives commands and sends replies. These
modules parse the commands, keep the state and produce the reply text or data.

## Installation

```
pip install .
```

The tests need pytest:

```
pip install ".[test]"
pytest
```

## Modules

### Reminders

- `groupbot.timerspec`: the `Timer` dataclass. It packs month, day, weekday,
  hour and minute into one integer. A field value of -1 means "every".
  - `get_filled_timer(date_strs, bot_id, group_id, match_date_only)` builds a
    timer from the groups of a command such as `在12月每周的8点30分时提醒大家…`.
    It accepts Chinese or Arabic numerals. When a value is invalid, the timer
    stays disabled and the reason is put in `timer.alert`.
  - `get_filled_cron_timer(cron, alert, url, bot_id, group_id)` builds a timer
    that runs from a cron expression.
  - `Timer.info()` gives a normalised description.
  - `Timer.timer_id()` gives a stable identifier derived from that description.
  - `chinese_num_to_int` and `chinese_char_to_int` convert the numerals.
- `groupbot.wake`:
  - `next_wake_time(timer, now)` returns the next moment to check a date-based
    timer. It is always later than `now`.
  - `should_fire(timer, now)` tells whether an enabled timer is due.
  - `first_weekday(date, weekday)` returns the first day of a month that falls
    on a given weekday, with Sunday as 0.
- `groupbot.cron`: five-field cron expressions (minute, hour, day of month,
  month, day of week). It accepts lists, ranges, steps, month and weekday
  names, and descriptors such as `@daily`.
  - `CronSchedule.parse` reads an expression.
  - `matches(moment)` tests a moment.
  - `next_after(moment)` returns the next whole minute that fires.
  - Invalid input raises `CronError`.
- `groupbot.clock`: `Clock(db_path, sender)` stores timers in SQLite. It runs
  each enabled timer on a background thread. When a timer is due it calls
  `sender(self_id, group_id, segments)`, where the segments come from
  `build_alert(timer)`: an @all, the alert text and, if the timer has one, an
  image. The other methods are:
  - `register_timer(timer, save)`
  - `cancel_timer(key)`
  - `list_timers(group_id)`
  - `get_timer(key)`
  - `stored_timers()`
  - `close()`

  `Clock` can also be used as a context manager.

### Group management

`groupbot.manager` provides:

- `mute_minutes(amount, unit)`: a mute length in minutes. It accepts minute,
  hour and day units and caps the result at `MAX_MUTE_MINUTES`.
- `unescape_brackets(text)`: unescapes the square brackets of CQ codes.
- `welcome_to_cq(template, user_id, nickname, group_id, group_name)`: fills
  the `{at}`, `{nickname}`, `{avatar}`, `{uid}`, `{gid}` and `{groupname}`
  placeholders.
- `pick_lucky_member(members, rng)`: picks one member at random from the ten
  who spoke most recently.
- `apply_toggle(data, option, bit)`: sets or clears a feature bit when given
  an on or off word.
- `ManagerStore(path)`: keeps welcome and farewell templates per group, and
  the GitHub users who have been admitted, in SQLite.
- Join verification through a gist:
  - `parse_gist_answer(comment)` reads the answer from a join request.
  - `group_gist_filename(group_id)` gives the expected gist file name.
  - `check_new_user(store, qq, group_id, github_user, gist_hash, fetch, now)`
    checks that the gist holds a Unix time within ten minutes of `now`. It
    raises `GistCheckError` with the reason when the check fails. On success
    it records the member.

### MIDI

`groupbot.midi` works with a note notation such as `CCGGAAGR FFEEDDCR`. Notes
are the letters A–G, optionally followed by `b` or `#` and octave digits. `R`
is a rest. `<n` makes a note or rest last 2**n quarter notes.

- `build_midi(text, timbre)` returns a `mido.MidiFile`.
- `write_midi(path, text, timbre)` writes the file unless it already exists.
- `midi_to_text(data, track)` reads a MIDI track back into the notation.
- `parse_note`, `octave`, `note_name`, `answer_for` and `random_target`
  support ear-training quizzes.
- `check_timbre` validates a program number in 0–127.
- `render_wav(midi_path, wav_path)` converts a MIDI file to WAV by running the
  external `timidity` program.
- Unparseable input raises `MidiSyntaxError`.

### Games and small utilities

- `groupbot.qqwife`: `MarriageRegistry(path)` is a daily pairing register per
  group, kept in SQLite. Its methods are:
  - `check_update`
  - `reset` (one group, or `"ALL"`)
  - `lookup`, which returns a `Couple` and a `Status`
  - `register`
  - `remarry`
  - `divorce_wife`
  - `divorce_husband`
  - `roster`
  - `close`

  `truncate_name(name, measure, limit)` shortens names that are too wide to
  draw.
- `groupbot.holiday`: the `Holiday` dataclass, with `describe(now)` giving a
  countdown. Holiday records are stored as `dur_year_month_day` and handled by
  `parse_holiday` and `format_holiday`. `weekend_text(now)` and
  `moyu_message(holidays, now)` produce the daily message.
- `groupbot.nsfw`: `Picture` holds classification scores. `judge` and
  `auto_judge` turn them into short verdicts. `auto_judge` returns None when
  there is nothing worth saying.
- `groupbot.reborn`: `WeightedChooser` makes weighted random picks.
  `load_areas(path)` reads a JSON list of `{"name", "weight"}` records.
  `reborn(areas, rng)` returns the announcement text.
- `groupbot.moegoe`: `parse_request(message)` recognises commands such as
  `让宁宁说…` and checks the text against the speaker's language.
  `speech_url(speaker, text)` builds the synthesis URL.
- `groupbot.imagefinder`:
  - `search_url(keyword)` builds the search address.
  - `parse_search_result(data)` returns `Illust` records, or raises
    `SearchError` when the service reports an error.
  - `describe_illust`, `clean_description` and `format_tags` format the
    caption.

## Example

```python
from groupbot.clock import Clock
from groupbot.timerspec import get_filled_timer

timer = get_filled_timer(
    ["", "12", "每周", "8", "30", "", "早会"], 0, 123456, False
)

def send(self_id, group_id, segments):
    print(group_id, segments)

with Clock("timers.db", send) as clock:
    clock.register_timer(timer, True)
    print(clock.list_timers(123456))
```

## What the package does not do

- There is no bot and no command to run. The package does not connect to a
  chat service, match incoming messages against commands, or send replies.
  Your code calls these functions and delivers what they return.
- The package makes no network requests:
  - `check_new_user` takes a `fetch` callable for the gist.
  - Holiday records, search responses and speech URLs are handled as data
    only.
- The only external program it runs is `timidity`, in `render_wav`.