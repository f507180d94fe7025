# Importa todos os models para registrar no Base.metadata (Alembic / create_all)

from portaal.models.dealers import Dealer  # noqa: F401
from portaal.models.files import FileUpload  # noqa: F401
from portaal.models.messages import Message  # noqa: F401
from portaal.models.user_sessions import UserSession  # noqa: F401
from portaal.models.user_preferences import UserPreferences  # noqa: F401
from portaal.models.activity_logs import LoginLog, DownloadLog, UploadLog, ChatLog  # noqa: F401
