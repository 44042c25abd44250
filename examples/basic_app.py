from mediaq import MediaQ
from mediaq.api.fastapi_app import create_api_app

mediaq = MediaQ(database_url="postgresql://localhost/myapp")

# POST /media and GET /media/{id}; run `mediaq worker` alongside
app = create_api_app(mediaq)
