"""Flask app for business card contact extraction"""

from flask import Flask, request, jsonify

import base64
import binascii
import boto3
from PIL import Image
import os
import re
import threading
from io import BytesIO
import json
from datetime import datetime, timezone
from urllib.parse import urlparse, unquote_plus
from dotenv import load_dotenv
import logging

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from contact_parser import extract_contact, parse_contact_from_text
from extract_info import extract_information
from merge_info import merge_contact_records, merge_extracted_data
from llm_utils import get_model
from prompt import get_prompt
from info_utils import has_content

load_dotenv()

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = int(os.getenv('MAX_CONTENT_LENGTH', 16 * 1024 * 1024))  # 16MB default

# AWS S3 Configuration
AWS_ACCESS_KEY_ID = os.getenv('ACCESS_KEY_ID')
AWS_SECRET_ACCESS_KEY = os.getenv('SECRET_ACCESS_KEY')
AWS_REGION = os.getenv('AWS_REGION')
S3_BUCKET = os.getenv('S3_BUCKET_NAME')

# Results for images that did not come from S3 are stored under this prefix
RESULTS_PREFIX = 'contacts'

DATA_URL_RE = re.compile(r'^data:(.+?);base64,(.+)$', re.DOTALL)
SUPPORTED_MEDIA_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')

# Front and back of one card
MAX_IMAGES = 2

EMPTY_EXTRACTION_WARNING = (
    "Warning: No contact information was extracted. "
    "The input may not be a business card; please enter the contact manually."
)

_s3_client = None
_s3_client_lock = threading.Lock()


def get_s3_client():
    global _s3_client
    with _s3_client_lock:
        if _s3_client is None:
            _s3_client = boto3.client(
                's3',
                region_name=AWS_REGION,
                aws_access_key_id=AWS_ACCESS_KEY_ID,
                aws_secret_access_key=AWS_SECRET_ACCESS_KEY
            )
    return _s3_client


# IMAGE SOURCES

def parse_s3_url(s3_url):
    """
    Split an S3 URL into bucket and key.

    Args:
        s3_url: S3 URL (Path style or Virtual-hosted style)

    Returns:
        Tuple of (bucket name, object key)

    Raises:
        ValueError: If the URL does not look like an S3 object URL
    """
    parsed = urlparse(s3_url)

    if not parsed.scheme.startswith('http'):
        raise ValueError("URL must start with http or https")

    if parsed.netloc.startswith('s3.') or parsed.netloc.startswith('s3-'):
        # Path style
        path_parts = parsed.path.lstrip('/').split('/', 1)
        if len(path_parts) < 2:
            raise ValueError(f"Invalid S3 path-style URL (cannot extract bucket/key): {s3_url}")
        bucket, key = path_parts
    else:
        # Virtual-hosted style: bucket is in the hostname before .s3
        s3_index = parsed.netloc.find('.s3')
        if s3_index == -1:
            raise ValueError(f"Could not parse bucket from S3 URL: {s3_url}")
        bucket = parsed.netloc[:s3_index]
        key = parsed.path.lstrip('/')

    if not bucket or not key:
        raise ValueError(f"Failed to identify bucket or key from URL: {s3_url}")

    return bucket, unquote_plus(key)


def download_image_from_s3(s3_url):
    """
    Download image from S3 URL and return PIL Image object.

    Args:
        s3_url: S3 URL (Path style or Virtual-hosted style)

    Returns:
        Tuple of (PIL Image object, bucket name, object key)

    Raises:
        ValueError: If URL is invalid or download fails
    """
    try:
        logger.info(f"Starting image download from S3 URL: {s3_url}")
        bucket, key = parse_s3_url(s3_url)
        logger.info(f"Parsed - Bucket: {bucket}, Key: {key}")

        response = get_s3_client().get_object(Bucket=bucket, Key=key)
        image = Image.open(BytesIO(response['Body'].read()))

        logger.info(f"Successfully downloaded image from bucket: {bucket}, key: {key}")
        return image, bucket, key

    except Exception as e:
        raise ValueError(f"Failed to download image from S3: {str(e)}")


def decode_data_url(data_url):
    """
    Decode a base64 image data URL as sent by the camera capture page.

    Args:
        data_url: String of the form data:<media type>;base64,<data>

    Returns:
        PIL Image object

    Raises:
        ValueError: If the data URL is malformed or not a supported image
    """
    if not isinstance(data_url, str):
        raise ValueError("Invalid image format")

    match = DATA_URL_RE.match(data_url.strip())
    if not match:
        raise ValueError("Invalid image format")

    media_type, payload = match.groups()
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise ValueError(f"Unsupported image type: {media_type}")

    try:
        image_bytes = base64.b64decode(payload, validate=True)
        return Image.open(BytesIO(image_bytes))
    except (binascii.Error, OSError) as e:
        raise ValueError(f"Failed to decode image: {str(e)}")


def upload_data_to_s3(data, bucket, key_prefix, data_type="contact"):
    """
    Upload extracted data to S3 as JSON.

    Args:
        data: Data to upload (dict)
        bucket: S3 bucket name
        key_prefix: S3 key prefix (directory)
        data_type: Type of data being uploaded (for filename)

    Returns:
        S3 key where data was uploaded

    Raises:
        ValueError: If upload fails
    """
    try:
        logger.info(f"Uploading extracted data to S3. Bucket: {bucket}, Prefix: {key_prefix}")
        data_key = f"{key_prefix}/{data_type}.json" if key_prefix else f"{data_type}.json"

        get_s3_client().put_object(
            Bucket=bucket,
            Key=data_key,
            Body=json.dumps(data, indent=2).encode('utf-8'),
            ContentType='application/json'
        )

        logger.info(f"Successfully uploaded data to S3: {data_key}")
        return data_key

    except Exception as e:
        raise ValueError(f"Failed to upload data to S3: {str(e)}")


# LLM OPERATIONS

def load_llm_prompt():
    """Load the LLM model and prompt."""
    model = get_model()
    prompt = get_prompt()
    return model, prompt


def generate_response(images):
    """
    Call LLM API with images and prompt to get response text.

    Args:
        images: List of PIL Image objects

    Returns:
        Response text from LLM

    Raises:
        ValueError: If LLM call fails
    """
    try:
        model, prompt = load_llm_prompt()
        response = model.generate_content([prompt] + images)

        if not response.text:
            raise ValueError("No text response from model")
        return response.text.strip()

    except Exception as e:
        raise ValueError(f"Failed to generate response from LLM: {str(e)}")


def analyze_image(image):
    """Run the vision model on one card image and normalize its reply."""
    response_text = generate_response([image])
    return extract_information(response_text)


def process_images(images):
    """
    Extract a contact from one or two images of the same card (front and back).

    Args:
        images: List of 1-2 PIL Image objects, front first

    Returns:
        ContactRecord merged across images; the front wins on conflicts

    Raises:
        ValueError: If the image count is wrong or any extraction fails
    """
    if not 1 <= len(images) <= MAX_IMAGES:
        raise ValueError(f"Invalid number of images. Expected 1 to {MAX_IMAGES} images.")

    return merge_extracted_data([analyze_image(image) for image in images])


# DATA VALIDATION

def is_empty_extraction(record):
    """True when no field of the record has content."""
    return not has_content(record)


def read_lines(data):
    """
    Pull the text lines out of a parse request.

    Raises:
        ValueError: If neither a text string nor a list of strings is present
    """
    if 'lines' in data:
        lines = data['lines']
        if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
            raise ValueError('lines must be an array of strings')
        return [line.strip() for line in lines if line.strip()]

    text = data.get('text')
    if text is None:
        raise ValueError('text or lines field is required')
    if not isinstance(text, str):
        raise ValueError('text must be a string')
    return None


def build_response(record, **extra):
    response = {
        'success': True,
        'data': record.to_dict(),
    }
    response.update(extra)

    if is_empty_extraction(record):
        response['warning'] = EMPTY_EXTRACTION_WARNING
        logger.warning(EMPTY_EXTRACTION_WARNING)

    return response


# REQUEST INPUTS

def collect_image_sources(data):
    """
    Gather the card images named in an analysis request.

    'image'/'images' hold data URLs and 'image_url'/'image_urls' hold S3 URLs.
    Inline images come before S3 images; within each, request order is kept.

    Returns:
        List of ('data', value) or ('s3', value) tuples

    Raises:
        ValueError: If a list field is not a list or too many images are given
    """
    sources = []
    for single, plural, kind in (('image', 'images', 'data'), ('image_url', 'image_urls', 's3')):
        if data.get(single):
            sources.append((kind, data[single]))
        values = data.get(plural)
        if values is None:
            continue
        if not isinstance(values, list):
            raise ValueError(f'{plural} must be an array')
        sources.extend((kind, value) for value in values if value)

    if len(sources) > MAX_IMAGES:
        raise ValueError(f'Maximum {MAX_IMAGES} images are supported')
    return sources


def load_images(sources):
    """
    Load every image source.

    Returns:
        Tuple of (list of PIL Images, bucket and key of the first S3 image or None)
    """
    images = []
    bucket, key = None, None
    for kind, value in sources:
        if kind == 's3':
            image, image_bucket, image_key = download_image_from_s3(value)
            if key is None:
                bucket, key = image_bucket, image_key
        else:
            image = decode_data_url(value)
        images.append(image)
    return images, bucket, key


# API ENDPOINTS

def process_parse_request(data):
    """
    Run the heuristic extractor on OCR text.

    Args:
        data: Dictionary containing 'text' (string) or 'lines' (array of strings)

    Returns:
        Tuple of (response_dict, status_code)
    """
    try:
        if not isinstance(data, dict):
            return {'error': 'Request body must be JSON/dict'}, 400

        lines = read_lines(data)
        if lines is None:
            record = parse_contact_from_text(data['text'])
        else:
            record = extract_contact(lines)

        logger.info("Sending parse response")
        return build_response(record, source='heuristic'), 200

    except ValueError as e:
        return {'error': str(e)}, 400
    except Exception as e:
        return {'error': f'Internal server error: {str(e)}'}, 500


def process_analyze_request(data):
    """
    Extract a contact from one or two card images with the vision model.

    Args:
        data: Dictionary with up to two images in 'image'/'images' (data URLs) or
            'image_url'/'image_urls' (S3 URLs), and
            optionally 'text' (OCR text to fill fields the model missed) and
            'upload_results' (store the result as JSON in S3)

    Returns:
        Tuple of (response_dict, status_code)
    """
    try:
        if not isinstance(data, dict):
            return {'error': 'Request body must be JSON/dict'}, 400

        ocr_text = data.get('text')
        upload_results = data.get('upload_results', False)

        sources = collect_image_sources(data)
        if not sources:
            return {'error': 'Image is required'}, 400
        if ocr_text is not None and not isinstance(ocr_text, str):
            return {'error': 'text must be a string'}, 400

        logger.info(f"Received card analysis request for {len(sources)} image(s): "
                    f"{[value if kind == 's3' else 'inline' for kind, value in sources]}")
        images, bucket, key = load_images(sources)

        warning_message = None
        source = 'ai'
        try:
            record = process_images(images)
        except ValueError as e:
            if not ocr_text:
                raise
            warning_message = f"AI extraction failed, used text heuristics instead: {str(e)}"
            logger.warning(warning_message)
            record = parse_contact_from_text(ocr_text)
            source = 'heuristic'
        else:
            if ocr_text:
                record = merge_contact_records(record, parse_contact_from_text(ocr_text))
                source = 'ai+heuristic'

        response = build_response(record, source=source)

        result_key = None
        if upload_results:
            try:
                if key:
                    key_prefix = '/'.join(key.split('/')[:-1]) if '/' in key else ''
                else:
                    if not S3_BUCKET:
                        raise ValueError("S3_BUCKET_NAME is not configured")
                    bucket = S3_BUCKET
                    key_prefix = f"{RESULTS_PREFIX}/{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S%f')}"
                result_key = upload_data_to_s3(response['data'], bucket, key_prefix)
            except ValueError as e:
                warning_message = f"{warning_message or 'Extraction successful.'} However, failed to upload results to S3: {str(e)}"
        response['s3_result_key'] = result_key

        if warning_message:
            response['warning'] = f"{response['warning']} {warning_message}" if 'warning' in response else warning_message
            logger.warning(warning_message)

        logger.info("Sending analysis response")
        return response, 200

    except ValueError as e:
        return {'error': str(e)}, 400
    except Exception as e:
        return {'error': f'Internal server error: {str(e)}'}, 500


@app.route('/parse', methods=['POST'])
def parse_text():
    """
    Extract a contact from OCR text with the local heuristics.

    Request body:
    {
        "text": "Jane Doe\\nSenior Engineer\\n..."   # or "lines": ["Jane Doe", ...]
    }
    """
    data = request.get_json(silent=True)
    response, status_code = process_parse_request(data)
    return jsonify(response), status_code


@app.route('/analyze-card', methods=['POST'])
def analyze_card():
    """
    Extract a contact from business card images (front and optional back).

    Request body:
    {
        "image": "data:image/jpeg;base64,...",   # or "image_url": "https://bucket.s3.amazonaws.com/card.jpg"
        "images": ["front data URL", "back data URL"],   # or "image_urls": [...], at most 2 in total
        "text": "optional OCR text",
        "upload_results": false
    }
    """
    data = request.get_json(silent=True)
    response, status_code = process_analyze_request(data)
    return jsonify(response), status_code


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint reporting which collaborators are configured."""
    return jsonify({
        'status': 'healthy',
        'model_configured': bool(os.getenv('GEMINI_API_KEY')),
        'bucket': S3_BUCKET,
    }), 200


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)


def lambda_handler(event, context):
    """
    AWS Lambda handler function.
    """
    logger.info(f"Lambda Handler invoked with event: {json.dumps(event, default=str)}")

    # Handle S3 Event Notification (S3 Trigger): analyze the uploaded card
    if 'Records' in event and isinstance(event['Records'], list):
        try:
            record = event['Records'][0]
            s3_info = record['s3']
            bucket_name = s3_info['bucket']['name']
            # S3 keys are URL-encoded in events
            trigger_key = unquote_plus(s3_info['object']['key'])
            region = record.get('awsRegion', 'us-east-1')
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Failed to parse S3 event record: {e}")
            return {'statusCode': 400, 'body': json.dumps({'error': f"Invalid S3 event: {str(e)}"})}

        data = {
            'image_url': f"https://{bucket_name}.s3.{region}.amazonaws.com/{trigger_key}",
            'upload_results': True
        }
        response, status_code = process_analyze_request(data)
        return {'statusCode': status_code, 'body': json.dumps(response)}

    # Handle API Gateway (Proxy or Direct)
    if 'body' in event:
        try:
            if isinstance(event['body'], str):
                data = json.loads(event['body'])
            else:
                data = event['body']
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse event body: {e}")
            return {'statusCode': 400, 'body': json.dumps({'error': "Invalid JSON body"})}
    # Handle direct invocation with data payload
    else:
        data = event

    has_images = isinstance(data, dict) and any(data.get(field) for field in ('image', 'images', 'image_url', 'image_urls'))
    if isinstance(data, dict) and ('text' in data or 'lines' in data) and not has_images:
        response, status_code = process_parse_request(data)
    else:
        response, status_code = process_analyze_request(data)

    return {'statusCode': status_code, 'body': json.dumps(response)}


# Main function alias
main = lambda_handler
