import concurrent.futures
import logging
import threading

log = logging.getLogger(__name__)


class EvaluationQueue:
    """
    Runs free-text evaluations off the request path.

    Each job is keyed by answer id: it calls the application's feedback
    evaluator and writes the result back with ``update_feedback``. A failed
    job is logged and its exception is kept on the returned future; the
    answer simply stays without feedback. With ``EVALUATION_EAGER`` the job
    runs in the calling thread.
    """

    def __init__(self, app=None):
        self.app = None
        self.eager = False
        self._executor = None
        self._pending = set()
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.eager = app.config.get('EVALUATION_EAGER', False)
        if not self.eager:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=app.config.get('EVALUATION_WORKERS', 4),
                thread_name_prefix='evaluation',
            )
        app.extensions['evaluation_queue'] = self

    def enqueue(self, answer_id, question, answer_text):
        if self.eager:
            future = concurrent.futures.Future()
            try:
                future.set_result(self._run(answer_id, question, answer_text))
            except Exception as e:
                future.set_exception(e)
            return future

        future = self._executor.submit(self._run, answer_id, question, answer_text)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future):
        with self._lock:
            self._pending.discard(future)

    def _run(self, answer_id, question, answer_text):
        from .answers import run_evaluation

        with self.app.app_context():
            evaluator = self.app.extensions['feedback_evaluator']
            try:
                feedback = run_evaluation(answer_id, question, answer_text, evaluator, only_if_current=True)
            except Exception:
                log.exception("Evaluation of answer %s failed", answer_id)
                raise
            log.info("Finished evaluation of answer %s", answer_id)
            return feedback

    def wait(self, timeout=None):
        """Blocks until the jobs queued so far have finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            concurrent.futures.wait(pending, timeout=timeout)

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
