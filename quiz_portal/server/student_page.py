"""Single-page student client served by the portal at ``/``.

The page never keeps quiz state of its own: every action is sent to the
server and the returned snapshot is rendered. The countdown shown is the
server's ``remaining_seconds``, refreshed once per second.
"""

from __future__ import annotations

from quiz_portal.core.markdown_math_renderer import MATHJAX_CONFIG_SCRIPT, MATHJAX_SCRIPT_URL

STUDENT_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Quiz Portal</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #f3f4f6; color: #111827; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; max-width: 960px; margin-inline: auto; }
      .card { background: #fff; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.25rem 1rem rgba(0, 0, 0, 0.08); }
      .hidden { display: none !important; }
      .row { display: flex; justify-content: space-between; align-items: center; gap: 1rem; }
      .primary-button { border: none; border-radius: 0.5rem; padding: 0.7rem 1.3rem; font-size: 1rem; background: #0078d4; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.5; cursor: not-allowed; }
      .quiz-list button { display: block; width: 100%; text-align: left; margin-bottom: 0.5rem; }
      .option { display: flex; align-items: center; gap: 0.75rem; padding: 0.75rem; border: 1px solid #d1d5db; border-radius: 0.5rem; margin-bottom: 0.5rem; cursor: pointer; }
      .option.selected { border-color: #0078d4; background: #e0efff; }
      .option .label { width: 2rem; height: 2rem; border-radius: 999px; background: #e5e7eb; display: flex; align-items: center; justify-content: center; font-weight: 600; }
      .layout { display: grid; grid-template-columns: 3fr 1fr; gap: 1rem; }
      .navigator { display: grid; grid-template-columns: repeat(5, 1fr); gap: 0.4rem; }
      .navigator button { border: none; border-radius: 0.4rem; padding: 0.5rem 0; cursor: pointer; background: #e5e7eb; }
      .navigator button.attempted { background: #107c10; color: #fff; }
      .navigator button.current { outline: 2px solid #0078d4; outline-offset: 2px; }
      #timer { font-weight: 700; font-size: 1.3rem; }
      #timer.expiring { color: #d13438; }
      #message { min-height: 1.25rem; color: #d13438; }
    </style>
    <script>__MATHJAX_CONFIG__</script>
    <script defer src="__MATHJAX_URL__"></script>
  </head>
  <body>
    <section class="card" id="dashboard-card">
      <h1>Quiz Portal</h1>
      <label>Roll number <input id="student-id" autocomplete="off" /></label>
      <h2>Available quizzes</h2>
      <div id="quiz-list" class="quiz-list"></div>
    </section>
    <p id="message"></p>
    <section class="card hidden" id="quiz-card">
      <div class="row">
        <strong id="counter"></strong>
        <span id="timer"></span>
      </div>
      <div class="layout">
        <div>
          <div id="prompt"></div>
          <div id="options"></div>
          <div class="row">
            <button id="prev-button" class="primary-button">Previous</button>
            <button id="next-button" class="primary-button">Next</button>
            <button id="submit-button" class="primary-button">Submit Quiz</button>
          </div>
        </div>
        <div>
          <h3>Question Navigator</h3>
          <div id="navigator" class="navigator"></div>
        </div>
      </div>
    </section>
    <section class="card hidden" id="result-card">
      <h2>Quiz Complete!</h2>
      <p id="result-text"></p>
      <button id="return-button" class="primary-button">Return to Dashboard</button>
    </section>
    <script>
      const el = (id) => document.getElementById(id);
      let snapshot = null;
      let pollHandle = null;

      function setVisibility(element, isVisible) {
        element.classList.toggle('hidden', !isVisible);
      }

      function formatTime(seconds) {
        const minutes = Math.floor(seconds / 60);
        const rest = seconds % 60;
        return `${String(minutes).padStart(2, '0')}:${String(rest).padStart(2, '0')}`;
      }

      async function api(method, path, body) {
        const response = await fetch(path, {
          method,
          headers: body ? { 'Content-Type': 'application/json' } : {},
          body: body ? JSON.stringify(body) : undefined,
        });
        if (response.status === 204) return null;
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(typeof payload.detail === 'string' ? payload.detail : 'Request failed.');
        }
        return payload;
      }

      async function loadQuizzes() {
        const quizzes = await api('GET', '/api/quizzes');
        const list = el('quiz-list');
        list.innerHTML = '';
        for (const quiz of quizzes) {
          const button = document.createElement('button');
          button.className = 'primary-button';
          button.textContent = `${quiz.title} (${quiz.time_limit_minutes} min)`;
          button.onclick = () => startQuiz(quiz.id);
          list.appendChild(button);
        }
      }

      async function startQuiz(quizId) {
        const studentId = el('student-id').value.trim();
        if (!studentId) {
          el('message').textContent = 'Enter your roll number first.';
          return;
        }
        try {
          render(await api('POST', `/api/quizzes/${encodeURIComponent(quizId)}/session`, { student_id: studentId }));
          startPolling();
        } catch (error) {
          el('message').textContent = error.message;
        }
      }

      function startPolling() {
        stopPolling();
        pollHandle = setInterval(refresh, 1000);
      }

      function stopPolling() {
        if (pollHandle) {
          clearInterval(pollHandle);
          pollHandle = null;
        }
      }

      async function refresh() {
        try {
          render(await api('GET', '/api/session'));
        } catch (error) {
          stopPolling();
          showDashboard(error.message);
        }
      }

      async function act(method, path, body) {
        try {
          render(await api(method, path, body));
        } catch (error) {
          el('message').textContent = error.message;
        }
      }

      function showDashboard(message) {
        setVisibility(el('quiz-card'), false);
        setVisibility(el('result-card'), false);
        setVisibility(el('dashboard-card'), true);
        el('message').textContent = message || '';
        loadQuizzes();
      }

      function render(next) {
        snapshot = next;
        el('message').textContent = '';
        if (snapshot.phase === 'complete') {
          stopPolling();
          setVisibility(el('quiz-card'), false);
          setVisibility(el('result-card'), true);
          const result = snapshot.result;
          el('result-text').textContent = result && result.scored
            ? `You answered ${result.score} out of ${result.total} questions correctly.`
            : 'Your answers were submitted. Results will be published later.';
          return;
        }
        if (snapshot.phase === 'error') {
          stopPolling();
          api('DELETE', '/api/session').catch(() => {});
          showDashboard(snapshot.error_message);
          return;
        }
        setVisibility(el('dashboard-card'), false);
        setVisibility(el('quiz-card'), true);
        const question = snapshot.current_question;
        const inProgress = snapshot.phase === 'in_progress';
        el('counter').textContent = `Question ${snapshot.cursor + 1} of ${snapshot.question_count}`;
        el('timer').textContent = inProgress ? formatTime(snapshot.remaining_seconds) : 'Submitting…';
        el('timer').classList.toggle('expiring', snapshot.remaining_seconds < 60);
        el('prompt').innerHTML = question.prompt_html;
        const options = el('options');
        options.innerHTML = '';
        for (const option of question.options) {
          const row = document.createElement('div');
          row.className = 'option' + (question.selected === option.label ? ' selected' : '');
          row.innerHTML = `<span class="label">${option.label}</span><span>${option.html}</span>`;
          row.onclick = () => inProgress && act('PUT', `/api/session/answers/${encodeURIComponent(question.id)}`, { option_label: option.label });
          options.appendChild(row);
        }
        const navigator = el('navigator');
        navigator.innerHTML = '';
        snapshot.navigator.forEach((entry, index) => {
          const button = document.createElement('button');
          button.textContent = index + 1;
          button.className = (entry.answered ? 'attempted' : '') + (index === snapshot.cursor ? ' current' : '');
          button.onclick = () => act('PUT', '/api/session/cursor', { index });
          navigator.appendChild(button);
        });
        el('prev-button').disabled = !inProgress || snapshot.cursor === 0;
        el('next-button').disabled = !inProgress || snapshot.cursor >= snapshot.question_count - 1;
        el('submit-button').disabled = !inProgress;
        if (window.MathJax && window.MathJax.typesetPromise) {
          window.MathJax.typesetPromise([el('prompt'), options]);
        }
      }

      el('prev-button').onclick = () => act('PUT', '/api/session/cursor', { index: snapshot.cursor - 1 });
      el('next-button').onclick = () => act('PUT', '/api/session/cursor', { index: snapshot.cursor + 1 });
      el('submit-button').onclick = () => {
        let text = "Are you sure you want to submit your answers? You won't be able to change them after submission.";
        if (snapshot.unanswered_count > 0) {
          text = `You have ${snapshot.unanswered_count} unanswered question(s). ` + text;
        }
        if (confirm(text)) {
          act('POST', '/api/session/submit');
        }
      };
      el('return-button').onclick = () => {
        api('DELETE', '/api/session').catch(() => {});
        showDashboard('');
      };
      window.addEventListener('pagehide', () => {
        if (snapshot && snapshot.phase === 'in_progress') {
          fetch('/api/session', { method: 'DELETE', keepalive: true });
        }
      });

      showDashboard('');
    </script>
  </body>
</html>
""".replace("__MATHJAX_CONFIG__", MATHJAX_CONFIG_SCRIPT).replace("__MATHJAX_URL__", MATHJAX_SCRIPT_URL)
