"""
Runs the collection steps in order and writes the merged result.

    load session -> nonce -> (pause) -> login -> user list -> (pause)
    -> token fields -> sign -> current user -> merge -> write
"""

import json
import logging
import time

from auth_session import NonceNotFoundError, SessionPersistError
from checkcode import sign

logger = logging.getLogger(__name__)

OUTPUT_FILE = "users.json"
DEFAULT_STEP_DELAY = 1.0


def merge_output(users, current_user):
    """Returns the user records followed by one ``{"currentUser": ...}`` wrapper."""
    if users is None:
        records = []
    elif isinstance(users, list):
        records = list(users)
    else:
        records = [users]
    records.append({'currentUser': current_user})
    return records


def save_output_json(data, filename=OUTPUT_FILE):
    """Writes the collected output as pretty-printed JSON. OSError propagates."""
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(json.dumps(data, indent=2, ensure_ascii=False))
    logger.info(f"--- Successfully saved output to: {filename} ---")


class CollectionPipeline:
    """Sequences login, user list and signed current-user fetches."""

    def __init__(self, auth_client, fetcher, store, output_path=OUTPUT_FILE,
                 step_delay=DEFAULT_STEP_DELAY, sleep=time.sleep, signer=sign):
        """
        Args:
            auth_client (AuthSessionClient): Login handshake
            fetcher (ResourceFetcher): Authenticated reads
            store (SessionStore): Persisted session cookie
            output_path (str): Where the merged JSON is written
            step_delay (float): Pause before login and before the token page, in seconds.
                Keeps the request rhythm close to a person's; 0 disables it.
            sleep (callable): Used for the pauses
            signer (callable): Signs the token fields
        """
        self.auth_client = auth_client
        self.fetcher = fetcher
        self.store = store
        self.output_path = output_path
        self.step_delay = step_delay
        self.sleep = sleep
        self.signer = signer

    def _pause(self):
        if self.step_delay > 0:
            logger.debug(f"Waiting {self.step_delay} seconds before next step...")
            self.sleep(self.step_delay)

    def run(self):
        """Runs every step and returns the written output.

        Raises:
            AuthenticationError: No nonce, or the login was rejected. Nothing is written.
            RequestError: The login POST could not be sent. Nothing is written.
            SessionPersistError: The cookie could not be saved. Raised after the output is written.
            OSError: The output file could not be written.
        """
        logger.info("--- Starting Sunvoy Collection Workflow ---")
        session_cookie = self.store.load()

        nonce = self.auth_client.fetch_nonce(session_cookie)
        if not nonce:
            raise NonceNotFoundError("Could not obtain a login nonce. Aborting.")

        self._pause()

        persist_error = None
        try:
            session_cookie = self.auth_client.login(nonce)
        except SessionPersistError as e:
            logger.error("Session could not be persisted. Finishing this run with the in-memory session.")
            persist_error = e
            session_cookie = e.session_cookie

        users = self.fetcher.fetch_user_list(session_cookie)

        self._pause()

        current_user = self.fetcher.fetch_signed_current_user(session_cookie, signer=self.signer)

        output = merge_output(users, current_user)
        save_output_json(output, self.output_path)
        logger.info(f"Collected {len(output) - 1} users and the current user.")

        if persist_error is not None:
            raise persist_error
        return output
