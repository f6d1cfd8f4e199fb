# Copyright 2025 iGenius S.p.A
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from collections.abc import Callable

from vcx_agent.exceptions import ProofVerificationMismatch
from vcx_agent.helpers.logger import setup_logger
from vcx_agent.platform.protocols import ProofVerification, ProofVerificationState

logger = setup_logger(__name__)

VerificationPredicate = Callable[[ProofVerificationState], bool]


def expected_verification(revocation_enabled: bool) -> VerificationPredicate:
    """Build the usual expectation for a demo run.

    With revocation enabled the holder's credential was revoked before the
    proof was built, so only INVALID is acceptable; otherwise only VERIFIED.
    """
    wanted = ProofVerificationState.INVALID if revocation_enabled else ProofVerificationState.VERIFIED
    return lambda state: state == wanted


def check_proof_verification(
    verification: ProofVerification,
    accept: VerificationPredicate,
) -> ProofVerificationState:
    """Return the verification state if ``accept`` allows it.

    Raises:
        ProofVerificationMismatch: the proof exchange completed, but its
            validity is not what the caller expected. NOT_AVAILABLE is never
            accepted since no proof was produced.
    """
    state = ProofVerificationState(verification.proof_state)
    if state == ProofVerificationState.NOT_AVAILABLE:
        logger.error(f"Unexpected proof state '{state.value}'.")
        raise ProofVerificationMismatch(state, "Proof verification result is not available.")

    if state == ProofVerificationState.VERIFIED:
        logger.warning("Proof is verified.")
    else:
        logger.warning(
            "Proof verification failed. A credential used to create proof may have been revoked."
        )

    if not accept(state):
        raise ProofVerificationMismatch(
            state, f"Proof verification ended as {state.value}, which was not expected."
        )
    return state
